"""
Tests for the weekly report and its delivery channels.
"""

import io
import json

from core.entities import Article, ArticleWithBlog, Blog, SourceType
from delivery.console_delivery import ConsoleDelivery
from delivery.file_delivery import FileDelivery
from delivery.report import WeeklyReport, generate_weekly_report, render_weekly_report, score_bar

BLOG = Blog(id="b1", name="Example", url="https://blog.example.com", authority=0.8, type=SourceType.ENTERPRISE)


def ranked_article(title: str, score: float) -> ArticleWithBlog:
    return ArticleWithBlog(
        id=title,
        blog_id="b1",
        title=title,
        url=f"https://blog.example.com/{title}",
        published_at="2026-01-05",
        publication_week="2026-w02",
        summary=f"Summary of {title}",
        key_points=["first", "second"],
        post_score=score,
        blog=BLOG,
    )


class TestScoreBar:
    def test_full_and_empty(self):
        assert score_bar(1.0) == "█" * 20
        assert score_bar(0.0) == "░" * 20

    def test_rounds_half_up(self):
        assert score_bar(0.125) == "█" * 3 + "░" * 17

    def test_partial(self):
        assert score_bar(0.71) == "█" * 14 + "░" * 6


class TestRender:
    def test_empty_week(self):
        assert render_weekly_report("2026-w02", []) == "\n📭 No MCP-related articles found for week 2026-w02\n"

    def test_ranked_articles(self):
        text = render_weekly_report("2026-w02", [ranked_article("alpha", 0.9), ranked_article("beta", 0.71)])

        assert "📡 Content Radar - Weekly Report: 2026-w02" in text
        assert "Found 2 MCP-related articles, ranked by quality:" in text
        assert "1. alpha" in text
        assert "2. beta" in text
        assert "🏢 Example (Authority: 80%)" in text
        assert f"📊 Score: [{score_bar(0.71)}] 71%" in text
        assert "   • second" in text
        assert text.index("1. alpha") < text.index("2. beta")

    def test_to_dict(self):
        report = WeeklyReport("2026-w02", [ranked_article("alpha", 0.9)])
        data = report.to_dict()

        assert data["week"] == "2026-w02"
        assert data["total"] == 1
        assert data["articles"][0]["blog"]["name"] == "Example"


class TestGenerate:
    async def test_reads_week_from_store(self, store):
        blog = await store.create_blog("Example", "https://blog.example.com", 0.8, "Enterprise")
        await store.upsert_article(Article(
            id="", blog_id=blog.id, title="MCP", url="https://blog.example.com/mcp",
            published_at="2026-01-05", publication_week="2026-w02", summary="s", post_score=0.7,
        ))

        report = await generate_weekly_report(store, "2026-w02")

        assert report.week == "2026-w02"
        assert [a.title for a in report.articles] == ["MCP"]
        assert (await generate_weekly_report(store, "2026-w03")).articles == []


class TestDelivery:
    async def test_console(self):
        stream = io.StringIO()

        await ConsoleDelivery(stream).deliver(report=WeeklyReport("2026-w02", []))

        assert "No MCP-related articles" in stream.getvalue()

    async def test_file(self, tmp_path):
        report = WeeklyReport("2026-w02", [ranked_article("alpha", 0.9)])

        await FileDelivery(str(tmp_path / "out")).deliver(report=report)

        data = json.loads((tmp_path / "out" / "report_2026-w02.json").read_text())
        assert data["total"] == 1
        assert "1. alpha" in (tmp_path / "out" / "report_2026-w02.md").read_text(encoding="utf-8")
