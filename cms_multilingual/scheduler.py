from apscheduler.schedulers.asyncio import AsyncIOScheduler

# Shared scheduler; only the optional diagnostics audit job is registered on it.
scheduler = AsyncIOScheduler()
