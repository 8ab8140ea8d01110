"""Hand-picked sources that are always part of discovery output."""

from __future__ import annotations

from devdose.models import CatalogSource, GitHubSource

_AnySource = GitHubSource | CatalogSource


def _github(owner: str, repo: str, tags: list[str], priority: int) -> GitHubSource:
    return GitHubSource(
        name=f"{owner}/{repo}",
        url=f"https://github.com/{owner}/{repo}",
        owner=owner,
        repo=repo,
        tags=tags,
        priority=priority,
    )


CURATED_SOURCES: tuple[_AnySource, ...] = (
    # Official documentation
    CatalogSource(type="docs", name="React Documentation", url="https://react.dev",
                  tags=["react", "hooks", "components"], priority=10),
    CatalogSource(type="docs", name="TypeScript Handbook", url="https://www.typescriptlang.org/docs",
                  tags=["typescript", "types"], priority=10),
    CatalogSource(type="docs", name="MDN Web Docs", url="https://developer.mozilla.org/en-US/docs/Web",
                  tags=["javascript", "css", "html", "web-apis"], priority=10),
    CatalogSource(type="docs", name="Vue.js Guide", url="https://vuejs.org/guide",
                  tags=["vue", "composition-api"], priority=9),
    CatalogSource(type="docs", name="Angular Documentation", url="https://angular.dev",
                  tags=["angular", "rxjs"], priority=9),
    # Flagship repositories
    _github("facebook", "react", ["react", "hooks"], 10),
    _github("microsoft", "TypeScript", ["typescript"], 10),
    _github("vuejs", "core", ["vue"], 9),
    _github("angular", "angular", ["angular"], 9),
    _github("vercel", "next.js", ["react", "nextjs", "ssr"], 9),
    # Educational platforms
    CatalogSource(type="blog", name="web.dev", url="https://web.dev",
                  tags=["performance", "web", "best-practices"], priority=9),
    CatalogSource(type="blog", name="CSS-Tricks", url="https://css-tricks.com",
                  tags=["css", "layout", "animations"], priority=8),
    CatalogSource(type="blog", name="JavaScript.info", url="https://javascript.info",
                  tags=["javascript", "fundamentals"], priority=8),
    # Awesome lists
    CatalogSource(type="awesome", name="awesome-react", url="https://github.com/enaqx/awesome-react",
                  tags=["react"], priority=7),
    CatalogSource(type="awesome", name="awesome-typescript", url="https://github.com/dzharii/awesome-typescript",
                  tags=["typescript"], priority=7),
    CatalogSource(type="awesome", name="awesome-css", url="https://github.com/awesome-css-group/awesome-css",
                  tags=["css"], priority=7),
    CatalogSource(type="awesome", name="awesome-javascript", url="https://github.com/sorrycc/awesome-javascript",
                  tags=["javascript"], priority=7),
)


def curated_sources(include_awesome_lists: bool = True) -> list[_AnySource]:
    return [
        source
        for source in CURATED_SOURCES
        if include_awesome_lists or source.type != "awesome"
    ]


def sources_by_tag(tag: str) -> list[_AnySource]:
    wanted = tag.lower()
    return [source for source in CURATED_SOURCES if wanted in source.tags]


def high_priority_sources(min_priority: int = 8) -> list[_AnySource]:
    return [source for source in CURATED_SOURCES if source.priority >= min_priority]
