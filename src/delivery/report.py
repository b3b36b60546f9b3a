"""
Weekly report of MCP-related articles, ranked by post_score.
"""
import math
from dataclasses import asdict, dataclass, field
from typing import List, Optional

from core.dates import current_week
from core.entities import ArticleWithBlog
from services.store import ContentStore

BAR_WIDTH = 20
RULE_WIDTH = 70


@dataclass
class WeeklyReport:
    week: str
    articles: List[ArticleWithBlog] = field(default_factory=list)

    def render(self) -> str:
        return render_weekly_report(self.week, self.articles)

    def to_dict(self) -> dict:
        return {
            "week": self.week,
            "total": len(self.articles),
            "articles": [asdict(article) for article in self.articles],
        }


def score_bar(score: float, width: int = BAR_WIDTH) -> str:
    filled = min(width, max(0, math.floor(score * width + 0.5)))
    return "█" * filled + "░" * (width - filled)


def render_weekly_report(week: str, articles: List[ArticleWithBlog]) -> str:
    if not articles:
        return f"\n📭 No MCP-related articles found for week {week}\n"

    lines: List[str] = [
        "",
        "═" * RULE_WIDTH,
        f"📡 Content Radar - Weekly Report: {week}",
        "═" * RULE_WIDTH,
        "",
        f"Found {len(articles)} MCP-related articles, ranked by quality:",
        "",
    ]

    for rank, article in enumerate(articles, start=1):
        blog_name = article.blog.name if article.blog else "Unknown"
        blog_authority = article.blog.authority if article.blog else 0.0

        lines.append(f"{rank}. {article.title}")
        lines.append(f"   📎 {article.url}")
        lines.append(f"   🏢 {blog_name} (Authority: {blog_authority * 100:.0f}%)")
        lines.append(f"   📊 Score: [{score_bar(article.post_score)}] {article.post_score * 100:.0f}%")
        lines.append(f"   📅 Published: {article.published_at}")
        lines.append("")
        lines.append(f"   📝 {article.summary}")
        lines.append("")
        lines.append("   Key Points:")
        for point in article.key_points:
            lines.append(f"   • {point}")
        lines.append("")
        lines.append("─" * RULE_WIDTH)
        lines.append("")

    return "\n".join(lines)


async def generate_weekly_report(store: ContentStore, week: Optional[str] = None) -> WeeklyReport:
    target_week = week or current_week()
    articles = await store.list_articles_by_week_with_blog(target_week)
    return WeeklyReport(week=target_week, articles=articles)
