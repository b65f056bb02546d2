from .multilingual_integrity import MultilingualIntegrityCheck
from .settings_integrity import SettingsIntegrityCheck
from .structural_sanity import StructuralSanityCheck

__all__ = ["MultilingualIntegrityCheck", "SettingsIntegrityCheck", "StructuralSanityCheck"]
