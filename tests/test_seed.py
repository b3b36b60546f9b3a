"""
Tests for seeding sources from YAML.
"""

import textwrap

import pytest

from services.seed import load_seed_data, priority_to_authority, seed_all

SOURCES_YML = textwrap.dedent(
    """
    sources:
      - name: Anthropic
        priority: critical
        type: Enterprise
        urls:
          blog: https://www.anthropic.com/news
          linkedin: https://www.linkedin.com/company/anthropicresearch/
      - name: Small Startup
        priority: low
        type: MCP-First Startups
        urls:
          blog: https://startup.example.com/blog
      - name: Only LinkedIn
        priority: high
        type: Trendsetter
        urls:
          linkedin: https://www.linkedin.com/in/someone/
    subreddits:
      - name: r/mcp
        subreddit: mcp
        priority: high
        type: Trendsetter
      - subreddit: LocalLLaMA
        priority: medium
        type: Community
    """
)


@pytest.fixture
def sources_file(tmp_path):
    path = tmp_path / "sources.yml"
    path.write_text(SOURCES_YML)
    return str(path)


class TestPriority:
    @pytest.mark.parametrize(
        "priority, authority",
        [("critical", 1.0), ("high", 0.8), ("Medium", 0.5), ("low", 0.3), (None, 0.5), ("unknown", 0.5)],
    )
    def test_priority_to_authority(self, priority, authority):
        assert priority_to_authority(priority) == authority


class TestLoadSeedData:
    def test_reads_both_lists(self, sources_file):
        data = load_seed_data(sources_file)
        assert len(data["sources"]) == 3
        assert len(data["subreddits"]) == 2

    def test_bundled_file_is_readable(self):
        data = load_seed_data()
        assert data["sources"]
        assert data["subreddits"]


class TestSeedAll:
    async def test_creates_sources(self, store, sources_file):
        counts = await seed_all(store, sources_file)

        assert counts == {"blogs": 2, "linkedin": 2, "reddit": 2}

        blogs = {blog.name: blog for blog in await store.list_blogs()}
        assert blogs["Anthropic"].authority == 1.0
        assert blogs["Small Startup"].type.value == "MCP-First Startups"

        subreddits = {source.subreddit: source for source in await store.list_reddit_sources()}
        assert subreddits["mcp"].authority == 0.8
        assert subreddits["LocalLLaMA"].name == "r/LocalLLaMA"

    async def test_is_idempotent(self, store, sources_file):
        await seed_all(store, sources_file)

        counts = await seed_all(store, sources_file)

        assert counts == {"blogs": 0, "linkedin": 0, "reddit": 0}
        assert len(await store.list_blogs()) == 2
