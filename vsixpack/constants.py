PACKAGE_ROOT = "extension"
MANIFEST_FILE = "package.json"
MANIFEST_NLS_FILE = "package.nls.json"
IGNORE_FILE = ".vscodeignore"
VSIX_MANIFEST_FILE = "extension.vsixmanifest"
CONTENT_TYPES_FILE = "[Content_Types].xml"

RESERVED_PUBLISHER = "vscode-samples"
RESERVED_DEPENDENCY = "vscode"

PREPUBLISH_SCRIPT = "vscode:prepublish"
PREPUBLISH_MAX_OUTPUT = 5000 * 1024

README_PLACEHOLDER = "This is the README for your extension "

ASSET_DETAILS = "Microsoft.VisualStudio.Services.Content.Details"
ASSET_CHANGELOG = "Microsoft.VisualStudio.Services.Content.Changelog"
ASSET_LICENSE = "Microsoft.VisualStudio.Services.Content.License"
ASSET_ICON = "Microsoft.VisualStudio.Services.Icons.Default"
ASSET_TRANSLATION_PREFIX = "Microsoft.VisualStudio.Code.Translation."

DEFAULT_IGNORE_PATTERNS = [
    ".vscodeignore",
    "package-lock.json",
    "yarn.lock",
    ".editorconfig",
    ".npmrc",
    ".yarnrc",
    ".gitattributes",
    "*.todo",
    "tslint.yaml",
    ".eslintrc*",
    ".babelrc*",
    ".prettierrc",
    "ISSUE_TEMPLATE.md",
    "CONTRIBUTING.md",
    "PULL_REQUEST_TEMPLATE.md",
    "CODE_OF_CONDUCT.md",
    ".github",
    ".travis.yml",
    "appveyor.yml",
    "**/.git/**",
    "**/*.vsix",
    "**/.DS_Store",
    "**/*.vsixmanifest",
    "**/.vscode-test/**",
]

# Hosts allowed to serve SVG images (badges mostly).
TRUSTED_SVG_SOURCES = frozenset({
    "api.bintray.com",
    "api.travis-ci.com",
    "api.travis-ci.org",
    "app.fossa.io",
    "badge.buildkite.com",
    "badge.fury.io",
    "badge.waffle.io",
    "badgen.net",
    "badges.frapsoft.com",
    "badges.gitter.im",
    "badges.greenkeeper.io",
    "cdn.travis-ci.com",
    "cdn.travis-ci.org",
    "ci.appveyor.com",
    "circleci.com",
    "cla.opensource.microsoft.com",
    "codacy.com",
    "codeclimate.com",
    "codecov.io",
    "coveralls.io",
    "david-dm.org",
    "deepscan.io",
    "dev.azure.com",
    "docs.rs",
    "flat.badgen.net",
    "gemnasium.com",
    "githost.io",
    "gitlab.com",
    "godoc.org",
    "goreportcard.com",
    "img.shields.io",
    "isitmaintained.com",
    "marketplace.visualstudio.com",
    "nodesecurity.io",
    "opencollective.com",
    "snyk.io",
    "travis-ci.com",
    "travis-ci.org",
    "visualstudio.com",
    "vsmarketplacebadge.apphb.com",
    "www.bithound.io",
    "www.versioneye.com",
})

# Contribution point -> tags it implies.
CONTRIBUTION_TAGS = {
    "themes": ["theme", "color-theme"],
    "iconThemes": ["theme", "icon-theme"],
    "snippets": ["snippet"],
    "keybindings": ["keybindings"],
    "debuggers": ["debuggers"],
    "jsonValidation": ["json"],
}

# Words found in the description -> canonical tags.
DESCRIPTION_KEYWORDS = {
    "git": ["git"],
    "npm": ["node"],
    "spell": ["markdown"],
    "bootstrap": ["bootstrap"],
    "lint": ["linters"],
    "linting": ["linters"],
    "react": ["javascript"],
    "js": ["javascript"],
    "node": ["javascript", "node"],
    "c++": ["c++"],
    "Cplusplus": ["c++"],
    "xml": ["xml"],
    "angular": ["javascript"],
    "jquery": ["javascript"],
    "php": ["php"],
    "python": ["python"],
    "latex": ["latex"],
    "ruby": ["ruby"],
    "java": ["java"],
    "erlang": ["erlang"],
    "sql": ["sql"],
    "nodejs": ["node"],
    "c#": ["c#"],
    "css": ["css"],
    "javascript": ["javascript"],
    "ftp": ["ftp"],
    "haskell": ["haskell"],
    "unity": ["unity"],
    "terminal": ["terminal"],
    "powershell": ["powershell"],
    "laravel": ["laravel"],
    "meteor": ["meteor"],
    "emmet": ["emmet"],
    "eslint": ["linters"],
    "tfs": ["tfs"],
    "rust": ["rust"],
}

DEFAULT_CONTENT_TYPES = {
    ".json": "application/json",
    ".vsixmanifest": "text/xml",
}
