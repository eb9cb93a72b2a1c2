# imports <<<
import logging
import queue
from multiprocessing import Process, Queue
# >>>

logger = logging.getLogger(__name__)

# Seconds between liveness checks while waiting for results.
RESULT_POLL_TIMEOUT = 1.0


# worker <<<
def worker(job_queue, result_queue, aggregator):
    """
    Each worker takes samples from job_queue, analyzes them with its copy of
    the aggregator, and places the results into result_queue.
    """
    while True:
        job = job_queue.get()
        if job is None:
            break

        # Unpack the job.
        (position, sample_name, sweeps) = job

        # A failing sample comes back as an all-unavailable record.
        result = aggregator.analyze_sample_safely(sample_name, sweeps)
        result_queue.put((position, result))
# >>>


def analyze_in_parallel(aggregator, groups, n_process, poll_timeout=RESULT_POLL_TIMEOUT):
    """
    Analyzes each sample group in a pool of worker processes.

    groups   : dict mapping sample names to their sweeps.
    n_process: number of worker processes; never more than there are samples.
    poll_timeout: seconds to wait for a result before checking the workers are alive.

    Returns a dict in the same sample order as `groups`.
    """
    # Build job list.
    jobs = [(position, name, sweeps) for position, (name, sweeps) in enumerate(groups.items())]
    total_jobs = len(jobs)
    n_process = min(n_process, total_jobs)
    logger.info("Analyzing %d samples in %d processes.", total_jobs, n_process)

    # Create queues.
    job_queue = Queue()
    result_queue = Queue()

    # Enqueue all jobs.
    for job in jobs:
        job_queue.put(job)

    # Place a sentinel (None) for each worker to know when to stop.
    for _ in range(n_process):
        job_queue.put(None)

    # Spawn worker processes.
    processes = []
    for _ in range(n_process):
        p = Process(target=worker, args=(job_queue, result_queue, aggregator))
        p.start()
        processes.append(p)

    # Collect results with progress updates. A worker that dies takes its
    # current sample with it; once no worker is left those samples are failed.
    results = {}
    lost = False
    while len(results) < total_jobs:
        try:
            position, result = result_queue.get(timeout=poll_timeout)
        except queue.Empty:
            if any(p.is_alive() for p in processes):
                continue
            if lost:
                break
            # Give results flushed just before the last exit one more poll.
            lost = True
            continue
        results[position] = result
        logger.info("Progress: %d/%d samples completed", len(results), total_jobs)

    for position, name, sweeps in jobs:
        if position not in results:
            logger.error("Worker process exited while analyzing sample '%s'.", name)
            results[position] = aggregator.failed_sample(name, sweeps, "worker process exited")
    if lost:
        job_queue.cancel_join_thread()

    # Wait for all workers to finish.
    for p in processes:
        p.join()

    return {result.sample_name: result for _, result in sorted(results.items())}
