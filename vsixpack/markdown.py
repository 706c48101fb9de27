"""
README / CHANGELOG handling.

Relative links and images are rewritten against the repository the extension
is published from, bare issue references become links on GitHub-hosted
projects, and the result is rendered once to check the image policy. The
rewritten markdown (not the rendered HTML) is what gets packaged.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from html.parser import HTMLParser
from typing import Any
from urllib.parse import unquote, urlsplit

from markdown_it import MarkdownIt

from .constants import ASSET_CHANGELOG, ASSET_DETAILS, README_PLACEHOLDER
from .file_utils import url_join
from .manifest import get_repository_url, is_github_repository, is_host_trusted
from .models import Asset, PackageFile, PackageOptions, PackagingError

log = logging.getLogger(__name__)

# [title](target) or ![title](target); the title may itself be an image.
_MARKDOWN_PATH_RE = re.compile(r"(!?)\[([^\]\[]*|!\[[^\]\[]*]\([^\)]+\))\]\(([^\)]+)\)")
_ISSUE_RE = re.compile(r"(\s)([\w-]+/[\w-]+)?#(\d+)\b")
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+\-]*:")
_GITHUB_REPO_PATH_RE = re.compile(r"github\.com/([^/]+)/([^/]+)(/|$)")


@dataclass(frozen=True)
class BaseUrls:
    content: str | None = None
    images: str | None = None
    repository: str | None = None

    @property
    def is_github(self) -> bool:
        return is_github_repository(self.repository)


def guess_base_urls(repository: str | None) -> BaseUrls | None:
    """Derive blob/raw/repository URLs from a github.com repository reference."""
    if not repository:
        return None
    match = _GITHUB_REPO_PATH_RE.search(repository)
    if not match:
        return None
    account = match.group(1)
    name = re.sub(r"\.git$", "", match.group(2), flags=re.IGNORECASE)
    return BaseUrls(
        content=f"https://github.com/{account}/{name}/blob/master",
        images=f"https://github.com/{account}/{name}/raw/master",
        repository=f"https://github.com/{account}/{name}",
    )


def resolve_base_urls(
    manifest: dict[str, Any],
    base_content_url: str | None = None,
    base_images_url: str | None = None,
) -> BaseUrls:
    guess = guess_base_urls(get_repository_url(manifest.get("repository")))
    return BaseUrls(
        content=base_content_url or (guess.content if guess else None),
        images=base_images_url or base_content_url or (guess.images if guess else None),
        repository=guess.repository if guess else None,
    )


def is_relative_link(link: str) -> bool:
    return not _SCHEME_RE.match(link) and not link.startswith("#")


def rewrite_links(text: str, urls: BaseUrls, name: str) -> str:
    def replace_match(match: re.Match) -> str:
        is_image, title, link = match.groups()
        relative = is_relative_link(link)
        prefix = urls.images if is_image else urls.content
        if relative and not prefix:
            asset = "image" if is_image else "link"
            raise PackagingError(
                f"Couldn't detect the repository where this extension is published. "
                f"The {asset} '{link}' will be broken in {name}. Please provide the repository URL "
                f"in package.json or use the --baseContentUrl and --baseImagesUrl options."
            )
        title = _MARKDOWN_PATH_RE.sub(replace_match, title)
        if relative:
            link = url_join(prefix, link)
        return f"{is_image}[{title}]({link})"

    return _MARKDOWN_PATH_RE.sub(replace_match, text)


def rewrite_issues(text: str, urls: BaseUrls) -> str:
    if not urls.is_github:
        return text

    def replace_match(match: re.Match) -> str:
        prefix, owner_and_repo, number = match.groups()
        if owner_and_repo:
            owner, repo = owner_and_repo.split("/", 1)
            issue_url = url_join("https://github.com", owner, repo, "issues", number)
            return f"{prefix}[{owner}/{repo}#{number}]({issue_url})"
        return f"{prefix}[#{number}]({url_join(urls.repository, 'issues', number)})"

    return _ISSUE_RE.sub(replace_match, text)


def rewrite_markdown(text: str, urls: BaseUrls, name: str) -> str:
    return rewrite_issues(rewrite_links(text, urls, name), urls)


class _ImageCollector(HTMLParser):
    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.sources: list[str] = []
        self.svg_tags = 0

    def handle_starttag(self, tag, attrs):
        if tag == "img":
            self.sources.append(dict(attrs).get("src") or "")
        elif tag == "svg":
            self.svg_tags += 1


def render_markdown(text: str) -> str:
    md = MarkdownIt("commonmark", {"html": True})
    # Let every URL through to the HTML so the policy below sees it.
    md.validateLink = lambda url: True
    return md.render(text)


def check_image_source(raw_src: str, name: str) -> None:
    src = unquote(raw_src)
    parts = urlsplit(src)
    scheme = parts.scheme.lower()
    if scheme == "data" and parts.path.lower().startswith("image/svg"):
        raise PackagingError(f"SVG data URLs are not allowed in {name}: {src}")
    if scheme != "https":
        raise PackagingError(f"Images in {name} must come from an HTTPS source: {src}")
    if parts.path.lower().endswith(".svg") and not is_host_trusted(parts.hostname):
        raise PackagingError(
            f"SVGs are restricted in {name}; please use other file image formats, such as PNG: {src}"
        )


def validate_markdown(text: str, name: str) -> None:
    collector = _ImageCollector()
    collector.feed(render_markdown(text))
    collector.close()
    for src in collector.sources:
        check_image_source(src, name)
    if collector.svg_tags:
        raise PackagingError(f"SVG tags are not allowed in {name}.")


class MarkdownProcessor:
    def __init__(self, manifest: dict[str, Any], name: str, pattern: str, asset_type: str,
                 options: PackageOptions | None = None):
        options = options or PackageOptions()
        self.name = name
        self.pattern = re.compile(pattern, re.IGNORECASE)
        self.asset_type = asset_type
        self.urls = resolve_base_urls(manifest, options.base_content_url, options.base_images_url)

    def on_file(self, file: PackageFile, assets: list[Asset]) -> PackageFile:
        if not self.pattern.match(file.path):
            return file

        assets.append(Asset(type=self.asset_type, path=file.path))
        text = file.read_text()
        if README_PLACEHOLDER in text:
            raise PackagingError("Make sure to edit the README.md file before you publish your extension.")

        text = rewrite_markdown(text, self.urls, self.name)
        validate_markdown(text, self.name)
        log.debug("rewrote %s", file.path)
        return replace(file, contents=text.encode("utf-8"))


def readme_processor(manifest: dict[str, Any], options: PackageOptions | None = None) -> MarkdownProcessor:
    return MarkdownProcessor(manifest, "README.md", r"^extension/readme\.md$", ASSET_DETAILS, options)


def changelog_processor(manifest: dict[str, Any], options: PackageOptions | None = None) -> MarkdownProcessor:
    return MarkdownProcessor(manifest, "CHANGELOG.md", r"^extension/changelog\.md$", ASSET_CHANGELOG, options)
