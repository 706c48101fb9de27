from __future__ import annotations

import logging
import re
import sys
from collections.abc import Callable
from dataclasses import replace
from pathlib import PurePosixPath
from typing import Any

from .constants import (
    ASSET_ICON,
    ASSET_LICENSE,
    ASSET_TRANSLATION_PREFIX,
    CONTRIBUTION_TAGS,
    DESCRIPTION_KEYWORDS,
    PACKAGE_ROOT,
    RESERVED_PUBLISHER,
)
from .file_utils import normalize_posix_path
from .manifest import get_repository_url, get_url, is_github_repository
from .markdown import changelog_processor, readme_processor
from .models import Asset, PackageFile, PackageOptions, PackagingError

log = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


def _unique(values) -> list:
    """Order-preserving dedup that also drops empty values."""
    seen = set()
    out = []
    for value in values:
        if not value or value in seen:
            continue
        seen.add(value)
        out.append(value)
    return out


def deny_confirm(prompt: str) -> bool:
    _ = prompt
    return False


def stdin_confirm(prompt: str) -> bool:
    if not sys.stdin.isatty():
        log.warning("stdin is not interactive; treating the answer as 'no'")
        return False
    try:
        answer = input(prompt)
    except EOFError:
        return False
    return re.match(r"^y$", answer.strip(), re.IGNORECASE) is not None


class ManifestProcessor:
    def __init__(self, manifest: dict[str, Any], confirm: Confirm | None = None):
        self.manifest = manifest
        self.confirm = confirm or deny_confirm

        flags = ["Public"]
        if manifest.get("preview"):
            flags.append("Preview")

        repository = get_repository_url(manifest.get("repository"))
        contributes = manifest.get("contributes") or {}

        qna = manifest.get("qna")
        enable_marketplace_qna = None
        customer_qna_link = None
        if qna == "marketplace":
            enable_marketplace_qna = True
        elif isinstance(qna, str):
            customer_qna_link = qna
        elif qna is False:
            enable_marketplace_qna = False

        links = {
            "repository": repository,
            "bugs": get_url(manifest.get("bugs")),
            "homepage": manifest.get("homepage"),
        }
        if is_github_repository(repository):
            links["github"] = repository

        self.metadata = {
            "id": manifest["name"],
            "displayName": manifest.get("displayName") or manifest["name"],
            "version": manifest["version"],
            "publisher": manifest["publisher"],
            "engine": manifest["engines"]["vscode"],
            "description": manifest.get("description") or "",
            "categories": ",".join(manifest.get("categories") or []),
            "flags": " ".join(flags),
            "links": links,
            "galleryBanner": manifest.get("galleryBanner") or {},
            "badges": manifest.get("badges") or [],
            "githubMarkdown": manifest.get("markdown") != "standard",
            "enableMarketplaceQnA": enable_marketplace_qna,
            "customerQnALink": customer_qna_link,
            "extensionDependencies": ",".join(_unique(manifest.get("extensionDependencies") or [])),
            "extensionPack": ",".join(_unique(manifest.get("extensionPack") or [])),
            "localizedLanguages": ",".join(
                loc.get("localizedLanguageName") or loc.get("languageName") or loc.get("languageId")
                for loc in contributes.get("localizations") or []
            ),
        }

    def on_end(self, assets: list[Asset]) -> None:
        if self.manifest.get("publisher") == RESERVED_PUBLISHER:
            raise PackagingError(
                f"It's not allowed to use the '{RESERVED_PUBLISHER}' publisher. Learn more at: "
                "https://code.visualstudio.com/api/working-with-extensions/publishing-extension."
            )
        if not self.manifest.get("repository"):
            log.warning("A 'repository' field is missing from the 'package.json' manifest file.")
            if not self.confirm("Do you want to continue? [y/N] "):
                raise PackagingError("Aborted")


def _extension_tags(extensions: list[str]) -> list[str]:
    cleaned = (re.sub(r"\W", "", ext) for ext in extensions)
    return [f"__ext_{ext}" for ext in cleaned if ext]


def _language_pack_tags(translations: list[dict], language_id: str) -> list[str]:
    tags = []
    for translation in translations or []:
        tags.extend([f"__lp_{translation['id']}", f"__lp-{language_id}_{translation['id']}"])
    return tags


def _description_tags(description: str) -> list[str]:
    tags = []
    for word, mapped in DESCRIPTION_KEYWORDS.items():
        if re.search(r"\b(?:%s)(?!\w)" % re.escape(word), description, re.IGNORECASE):
            tags.extend(mapped)
    return tags


class TagsProcessor:
    def __init__(self, manifest: dict[str, Any]):
        self.manifest = manifest

    def on_end(self, assets: list[Asset]) -> dict[str, Any]:
        manifest = self.manifest
        contributes = manifest.get("contributes") or {}

        tags: list[str] = list(manifest.get("keywords") or [])
        for contribution, implied in CONTRIBUTION_TAGS.items():
            if contributes.get(contribution):
                tags.extend(implied)

        for loc in contributes.get("localizations") or []:
            tags.append(f"lp-{loc['languageId']}")
            tags.extend(_language_pack_tags(loc.get("translations"), loc["languageId"]))

        for language in contributes.get("languages") or []:
            tags.append(language.get("id"))
            tags.extend(language.get("aliases") or [])
            tags.extend(_extension_tags(language.get("extensions") or []))

        for event in manifest.get("activationEvents") or []:
            match = re.match(r"^onLanguage:(.*)$", event)
            if match:
                tags.append(match.group(1))

        tags.extend(grammar.get("language") for grammar in contributes.get("grammars") or [])
        tags.extend(_description_tags(manifest.get("description") or ""))

        return {"tags": ",".join(_unique(tags))}


class LicenseProcessor:
    def __init__(self, manifest: dict[str, Any]):
        match = re.match(r"^SEE LICENSE IN (.*)$", manifest.get("license") or "")
        if match and match.group(1):
            self.pattern = re.compile(re.escape(f"{PACKAGE_ROOT}/{match.group(1)}") + r"\Z")
        else:
            self.pattern = re.compile(rf"^{PACKAGE_ROOT}/license(\.(md|txt))?\Z", re.IGNORECASE)
        self.license_path: str | None = None

    def on_start(self, files: list[PackageFile]) -> None:
        # First match in collection order wins.
        self.license_path = next((f.path for f in files if self.pattern.match(f.path)), None)

    def on_file(self, file: PackageFile, assets: list[Asset]) -> PackageFile:
        if file.path != self.license_path:
            return file
        if not PurePosixPath(file.path).suffix:
            file = replace(file, path=f"{file.path}.txt")
        assets.append(Asset(type=ASSET_LICENSE, path=file.path))
        return file

    def on_end(self, assets: list[Asset]) -> dict[str, Any]:
        return {"license": assets[0].path if assets else None}


class IconProcessor:
    def __init__(self, manifest: dict[str, Any]):
        icon = manifest.get("icon")
        self.icon = f"{PACKAGE_ROOT}/{icon}" if icon else None

    def on_file(self, file: PackageFile, assets: list[Asset]) -> PackageFile:
        if self.icon and file.path == self.icon:
            assets.append(Asset(type=ASSET_ICON, path=file.path))
        return file

    def on_end(self, assets: list[Asset]) -> dict[str, Any]:
        if self.icon and not assets:
            raise PackagingError(f"The specified icon '{self.icon}' wasn't found in the extension.")
        return {"icon": self.icon if assets else None}


class NLSProcessor:
    def __init__(self, manifest: dict[str, Any]):
        localizations = (manifest.get("contributes") or {}).get("localizations") or []

        # Later declarations for the same language replace earlier ones.
        by_language: dict[str, str] = {}
        for localization in localizations:
            for translation in localization.get("translations") or []:
                if translation.get("id") == "vscode" and translation.get("path"):
                    rel = normalize_posix_path(re.sub(r"^\.[/\\]", "", translation["path"]))
                    by_language[localization["languageId"].upper()] = f"{PACKAGE_ROOT}/{rel}"

        self.translations = {path: language for language, path in by_language.items()}

    def on_file(self, file: PackageFile, assets: list[Asset]) -> PackageFile:
        language = self.translations.get(file.path)
        if language:
            assets.append(Asset(type=f"{ASSET_TRANSLATION_PREFIX}{language}", path=file.path))
        return file


def create_default_processors(
    manifest: dict[str, Any],
    options: PackageOptions | None = None,
    confirm: Confirm | None = None,
) -> list[object]:
    return [
        ManifestProcessor(manifest, confirm=confirm),
        TagsProcessor(manifest),
        readme_processor(manifest, options),
        changelog_processor(manifest, options),
        LicenseProcessor(manifest),
        IconProcessor(manifest),
        NLSProcessor(manifest),
    ]
