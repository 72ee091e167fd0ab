from ...crud import delayed_jobs as delayed_jobs_crud


async def get_job_store():
    return delayed_jobs_crud
