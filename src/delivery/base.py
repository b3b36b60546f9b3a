"""
Module to contain base class for Delivery channels
"""
from abc import ABC, abstractmethod

from delivery.report import WeeklyReport


class DeliveryChannel(ABC):
    """
    Base interface for all report delivery channels.
    """

    name: str

    @abstractmethod
    async def deliver(self, *, report: WeeklyReport) -> None:
        """
        Deliver the weekly report.
        Must raise exceptions on failure (handled upstream).
        """
        raise NotImplementedError
