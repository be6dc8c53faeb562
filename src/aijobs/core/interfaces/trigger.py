from abc import ABC, abstractmethod


class TriggerPort(ABC):
    @abstractmethod
    async def trigger(self, job_id: str) -> None:
        """Ask the backend to start processing a job.

        Returns as soon as the request is dispatched. Only local problems
        (no credential, bad configuration) raise a TriggerError; the outcome
        of the network exchange is logged, never raised.
        """
        pass

    @abstractmethod
    async def drain(self) -> None:
        """Wait for every dispatched request to finish"""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Cancel dispatched requests that are still in flight"""
        pass
