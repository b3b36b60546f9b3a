"""
Console delivery channel
"""
import sys
from typing import TextIO

from delivery.base import DeliveryChannel
from delivery.report import WeeklyReport


class ConsoleDelivery(DeliveryChannel):
    name = "console"

    def __init__(self, stream: TextIO = None):
        self.stream = stream or sys.stdout

    async def deliver(self, *, report: WeeklyReport) -> None:
        self.stream.write(report.render())
        self.stream.write("\n")
        self.stream.flush()
