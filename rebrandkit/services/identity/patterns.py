"""
Structural text patterns for identity tokens.

Manifests, property lists, Gradle scripts and Xcode project files are edited as
plain text. Each edit is a TextPattern: a compiled regex that locates one token
and a renderer that produces the replacement for that match. Everything outside
the matched span is left byte-for-byte as it was.

Contract:
    find(text)            first match or None
    extract(text)         value captured by the `value` group of the first match
    substitute(text, v)   (new_text, count); replaces the first match, or every
                          match when replace_all is set; count 0 means no match
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from xml.sax.saxutils import escape

Renderer = Callable[[re.Match[str], str], str]


@dataclass(frozen=True)
class TextPattern:
    """A named, documented substitution over a text artifact."""

    name: str
    regex: re.Pattern[str]
    render: Renderer
    replace_all: bool = False

    def find(self, text: str) -> re.Match[str] | None:
        return self.regex.search(text)

    def extract(self, text: str) -> str | None:
        match = self.find(text)
        return match.group("value") if match else None

    def substitute(self, text: str, value: str) -> tuple[str, int]:
        return self.regex.subn(
            lambda match: self.render(match, value),
            text,
            count=0 if self.replace_all else 1,
        )


def _wrap(match: re.Match[str], value: str) -> str:
    """Keep the `head` and `tail` groups, swap the value in between."""
    return f"{match.group('head')}{value}{match.group('tail')}"


def xml_escape(value: str) -> str:
    return escape(value, {'"': "&quot;"})


def _wrap_xml(match: re.Match[str], value: str) -> str:
    return _wrap(match, xml_escape(value))


def _quoted(*, head: str, tail: str = r'"') -> re.Pattern[str]:
    return re.compile(rf'(?P<head>{head})(?P<value>[^"]*)(?P<tail>{tail})')


# Android ------------------------------------------------------------------

MANIFEST_PACKAGE = TextPattern(
    name="AndroidManifest package",
    regex=_quoted(head=r'\bpackage="'),
    render=_wrap,
)

MANIFEST_LABEL = TextPattern(
    name="AndroidManifest android:label",
    regex=_quoted(head=r'android:label="'),
    render=_wrap_xml,
)

GRADLE_APPLICATION_ID = TextPattern(
    name="Gradle applicationId",
    regex=_quoted(head=r'\bapplicationId\s*=?\s*"'),
    render=_wrap,
)

GRADLE_NAMESPACE = TextPattern(
    name="Gradle namespace",
    regex=_quoted(head=r'\bnamespace\s*=?\s*"'),
    render=_wrap,
)

SOURCE_PACKAGE_DECLARATION = TextPattern(
    name="Kotlin/Java package declaration",
    regex=re.compile(r"^(?P<head>package\s+)(?P<value>[\w.]+)(?P<tail>;?)", re.MULTILINE),
    render=_wrap,
)


# iOS ----------------------------------------------------------------------


def _plist_string(key: str) -> TextPattern:
    return TextPattern(
        name=f"Info.plist {key}",
        regex=re.compile(
            rf"(?P<head><key>{key}</key>\s*<string>)(?P<value>[^<]*)(?P<tail></string>)"
        ),
        render=_wrap_xml,
    )


PLIST_BUNDLE_IDENTIFIER = _plist_string("CFBundleIdentifier")
PLIST_BUNDLE_NAME = _plist_string("CFBundleName")
PLIST_BUNDLE_DISPLAY_NAME = _plist_string("CFBundleDisplayName")


def _pbx_setting(key: str) -> TextPattern:
    # Repeated once per build configuration, so every occurrence is replaced
    return TextPattern(
        name=f"project.pbxproj {key}",
        regex=re.compile(rf"(?P<head>\b{key} = )(?P<value>[^;\n]*)(?P<tail>;)"),
        render=_wrap,
        replace_all=True,
    )


PBX_DEVELOPMENT_TEAM = _pbx_setting("DEVELOPMENT_TEAM")
PBX_CODE_SIGN_STYLE = _pbx_setting("CODE_SIGN_STYLE")
PBX_DEPLOYMENT_TARGET = _pbx_setting("IPHONEOS_DEPLOYMENT_TARGET")

TEST_TARGET_SUFFIX = ".RunnerTests"


def _render_bundle_identifier(match: re.Match[str], value: str) -> str:
    current = match.group("value").strip('"')
    if current.endswith(TEST_TARGET_SUFFIX):
        value = f"{value}{TEST_TARGET_SUFFIX}"
    return _wrap(match, value)


PBX_BUNDLE_IDENTIFIER = TextPattern(
    name="project.pbxproj PRODUCT_BUNDLE_IDENTIFIER",
    regex=re.compile(r"(?P<head>\bPRODUCT_BUNDLE_IDENTIFIER = )(?P<value>[^;\n]*)(?P<tail>;)"),
    render=_render_bundle_identifier,
    replace_all=True,
)

PODFILE_PLATFORM = TextPattern(
    name="Podfile platform :ios",
    regex=re.compile(
        r"^(?P<head>)#?[ \t]*platform :ios, '(?P<value>[^']*)'(?P<tail>)", re.MULTILINE
    ),
    render=lambda match, value: f"platform :ios, '{value}'",
)


# Flutter ------------------------------------------------------------------

PUBSPEC_VERSION = TextPattern(
    name="pubspec.yaml version",
    regex=re.compile(r"^(?P<head>version:[ \t]*)(?P<value>[^\s#]+)(?P<tail>)", re.MULTILINE),
    render=_wrap,
)

PUBSPEC_BUILD_NUMBER = re.compile(r"\+(?P<code>\d+)$")


def _dart_string_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'").replace("$", "\\$")


def dart_constant(name: str, dart_type: str) -> TextPattern:
    """Pattern for a top-level `const <type> <name> = <value>;` declaration.

    String constants are matched and rendered single-quoted; other types are
    rendered as bare literals.
    """
    if dart_type == "String":
        return TextPattern(
            name=f"config.dart {name}",
            regex=re.compile(
                rf"(?P<head>\bconst\s+String\s+{name}\s*=\s*')(?P<value>[^']*)(?P<tail>'\s*;)"
            ),
            render=lambda match, value: _wrap(match, _dart_string_escape(value)),
        )
    return TextPattern(
        name=f"config.dart {name}",
        regex=re.compile(
            rf"(?P<head>\bconst\s+{dart_type}\s+{name}\s*=\s*)(?P<value>[^;]*)(?P<tail>;)"
        ),
        render=_wrap,
    )
