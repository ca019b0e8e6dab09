from pipeline.dubbing_pipeline import DubbingPipeline
from pipeline.durable_store import DurableStore
from pipeline.fetcher import ArtifactFetcher
from pipeline.poller import JobPoller
from pipeline.submitter import JobSubmitter

__all__ = [
    "ArtifactFetcher",
    "DubbingPipeline",
    "DurableStore",
    "JobPoller",
    "JobSubmitter",
]
