"""
File delivery channel
"""
import json
from pathlib import Path

from delivery.base import DeliveryChannel
from delivery.report import WeeklyReport


class FileDelivery(DeliveryChannel):
    name = "file"

    def __init__(self, output_dir: str = "output"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    async def deliver(self, *, report: WeeklyReport) -> None:
        base = self.output_dir / f"report_{report.week}"

        base.with_suffix(".json").write_text(
            json.dumps(report.to_dict(), indent=2, default=str),
            encoding="utf-8",
        )
        base.with_suffix(".md").write_text(report.render(), encoding="utf-8")
