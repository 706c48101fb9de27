import shutil
import tempfile
import unittest
import zipfile
from pathlib import Path

from vsixpack.archive import assemble, lookup_content_type, to_content_types, to_vsix_manifest, write_vsix
from vsixpack.models import Asset, PackageFile, PipelineState
from vsixpack.pipeline import process_files
from vsixpack.processors import ManifestProcessor, TagsProcessor


def pipeline_metadata(**overrides):
    manifest = {
        "publisher": "acme",
        "name": "demo",
        "displayName": "Tom & Jerry",
        "version": "1.2.3",
        "engines": {"vscode": "^1.50.0"},
        "repository": "https://github.com/acme/demo",
        "keywords": ["cats", "mice"],
    }
    manifest.update(overrides)
    return process_files([ManifestProcessor(manifest), TagsProcessor(manifest)], []).metadata


class TestContentTypes(unittest.TestCase):
    def test_extensions_are_deduplicated_and_lowercased(self):
        files = [
            PackageFile(path="extension/a.JS"),
            PackageFile(path="extension/b.js"),
            PackageFile(path="extension/LICENSE"),
            PackageFile(path="extension/c.weirdext"),
        ]
        xml = to_content_types(files)
        self.assertEqual(xml.count('Extension=".js"'), 1)
        self.assertNotIn(".JS", xml)
        self.assertIn('Extension=".weirdext" ContentType="application/octet-stream"', xml)
        self.assertIn('Extension=".json" ContentType="application/json"', xml)
        self.assertIn('Extension=".vsixmanifest" ContentType="text/xml"', xml)

    def test_unknown_extension_falls_back(self):
        self.assertEqual(lookup_content_type(".definitelynotreal"), "application/octet-stream")
        self.assertEqual(lookup_content_type(".png"), "image/png")

    def test_rendering_is_deterministic(self):
        files = [PackageFile(path="extension/a.md"), PackageFile(path="extension/b.png")]
        self.assertEqual(to_content_types(files), to_content_types(list(files)))


class TestVsixManifest(unittest.TestCase):
    def test_manifest_fields(self):
        metadata = pipeline_metadata()
        metadata["assets"] = [Asset(type="Microsoft.VisualStudio.Services.Content.Details", path="extension/README.md")]
        metadata["license"] = "extension/LICENSE.txt"
        xml = to_vsix_manifest(metadata)

        self.assertIn('<Identity Language="en-US" Id="demo" Version="1.2.3" Publisher="acme" />', xml)
        self.assertIn("<DisplayName>Tom &amp; Jerry</DisplayName>", xml)
        self.assertIn("<Tags>cats,mice</Tags>", xml)
        self.assertIn("<License>extension/LICENSE.txt</License>", xml)
        self.assertNotIn("<Icon>", xml)
        self.assertIn('Id="Microsoft.VisualStudio.Services.Links.GitHub"', xml)
        self.assertIn(
            '<Asset Type="Microsoft.VisualStudio.Services.Content.Details" Path="extension/README.md" Addressable="true" />',
            xml,
        )
        self.assertLess(xml.index("Microsoft.VisualStudio.Code.Manifest"), xml.index("Content.Details"))

    def test_qna_property(self):
        self.assertNotIn("EnableMarketplaceQnA", to_vsix_manifest(pipeline_metadata()))
        xml = to_vsix_manifest(pipeline_metadata(qna=False))
        self.assertIn('Id="Microsoft.VisualStudio.Services.EnableMarketplaceQnA" Value="false"', xml)

    def test_rendering_is_deterministic(self):
        self.assertEqual(to_vsix_manifest(pipeline_metadata()), to_vsix_manifest(pipeline_metadata()))


class TestAssembleAndWrite(unittest.TestCase):
    def setUp(self):
        self.root = Path(tempfile.mkdtemp(prefix="vsixpack_archive_"))

    def tearDown(self):
        shutil.rmtree(self.root, ignore_errors=True)

    def test_assemble_prefixes_generated_documents(self):
        state = PipelineState(
            files=[PackageFile(path="extension/package.json", contents=b"{}")],
            metadata=pipeline_metadata(),
        )
        files = assemble(state)
        self.assertEqual(
            [f.path for f in files],
            ["extension.vsixmanifest", "[Content_Types].xml", "extension/package.json"],
        )

    def test_write_replaces_existing_archive(self):
        on_disk = self.root / "main.js"
        on_disk.write_text("console.log(1)", encoding="utf-8")
        target = self.root / "out" / "demo.vsix"
        target.parent.mkdir()
        target.write_bytes(b"stale")

        files = [
            PackageFile(path="extension.vsixmanifest", contents=b"<x/>"),
            PackageFile(path="extension/package.json", contents=b"{}"),
            PackageFile(path="extension/main.js", local_path=on_disk),
        ]
        self.assertEqual(write_vsix(files, target), target)

        with zipfile.ZipFile(target) as zf:
            self.assertEqual(zf.namelist(), [f.path for f in files])
            self.assertEqual(zf.read("extension/main.js"), b"console.log(1)")
            self.assertEqual(zf.read("extension/package.json"), b"{}")

    def test_write_creates_parent_directories(self):
        target = self.root / "a" / "b" / "demo.vsix"
        write_vsix([PackageFile(path="extension/package.json", contents=b"{}")], target)
        self.assertTrue(zipfile.is_zipfile(target))


if __name__ == "__main__":
    unittest.main()
