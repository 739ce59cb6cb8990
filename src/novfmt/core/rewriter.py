"""Find/replace rewriting of EPUB content documents and package metadata."""

import logging
import warnings
from collections.abc import Callable, Sequence
from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path

import soupsieve
from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning
from bs4.builder import ParserRejectedMarkup
from bs4.element import NavigableString, PreformattedString
from lxml import etree

from novfmt.core.archive import MIMETYPE_FILE, write_epub_archive
from novfmt.core.entities import expand_named_entities
from novfmt.core.errors import (
    ContentParseError,
    InputError,
    RuleError,
    WriteError,
    raise_if_interrupted,
)
from novfmt.core.opf import DC_NS, EPUB_MIMETYPE, local_name
from novfmt.core.volume_loader import load_volume, resolve_href
from novfmt.models.options import RewriteOptions, RewriteRule, RewriteScope, RewriteStats
from novfmt.models.volume import Volume

# Suppress XML parsing warnings - EPUB files often use XHTML
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

logger = logging.getLogger(__name__)

XHTML_MEDIA_TYPE = "application/xhtml+xml"
HTML_MEDIA_TYPE = "text/html"
CONTENT_MEDIA_TYPES = (XHTML_MEDIA_TYPE, HTML_MEDIA_TYPE)
SKIPPED_PARENTS = ("script", "style")
# Dublin Core elements whose text is never rewritten
PROTECTED_DC_FIELDS = ("identifier", "language", "date")


@dataclass
class CompiledRule:
    """A validated rule ready to apply."""

    find: str
    replace: str
    selectors: list[soupsieve.SoupSieve] = field(default_factory=list)

    @property
    def scoped(self) -> bool:
        return bool(self.selectors)


@dataclass
class RewriteResult:
    """Outcome of rewriting one document."""

    matches: int
    changed: bool
    content: bytes


def compile_rules(rules: Sequence[RewriteRule]) -> list[CompiledRule]:
    """Validate rules and compile their selectors.

    Raises:
        RuleError: If a rule has an empty find pattern or a bad selector
    """
    compiled = []
    for index, rule in enumerate(rules, start=1):
        if not rule.find:
            raise RuleError(f"rule {index}: find pattern must not be empty")
        selectors = []
        for selector in rule.selectors:
            selector = selector.strip()
            if not selector:
                continue
            try:
                selectors.append(soupsieve.compile(selector))
            except soupsieve.SelectorSyntaxError as e:
                raise RuleError(f"rule {index}: invalid selector {selector!r}: {e}") from e
        compiled.append(CompiledRule(find=rule.find, replace=rule.replace, selectors=selectors))
    return compiled


def _is_text(node) -> bool:
    if not isinstance(node, NavigableString) or isinstance(node, PreformattedString):
        return False
    return not (node.parent is not None and node.parent.name in SKIPPED_PARENTS)


def _text_nodes(soup: BeautifulSoup, rule: CompiledRule) -> list[NavigableString]:
    if not rule.scoped:
        return [node for node in soup.find_all(string=True) if _is_text(node)]

    nodes: list[NavigableString] = []
    seen: set[int] = set()
    for selector in rule.selectors:
        for element in selector.select(soup):
            for node in element.find_all(string=True):
                if id(node) not in seen and _is_text(node):
                    seen.add(id(node))
                    nodes.append(node)
    return nodes


def _apply_rule(soup: BeautifulSoup, rule: CompiledRule) -> int:
    matches = 0
    for node in _text_nodes(soup, rule):
        text = str(node)
        count = text.count(rule.find)
        if count:
            matches += count
            node.replace_with(text.replace(rule.find, rule.replace))
    return matches


def rewrite_xhtml(
    data: bytes,
    rules: Sequence[CompiledRule],
    name: str = "<document>",
    html: bool = False,
) -> RewriteResult:
    """Apply rules to the text content of an XHTML (or, with ``html``, HTML) document.

    Rules run in order, each over the previous rule's output. Unchanged
    documents are returned byte-for-byte.

    Raises:
        ContentParseError: If the document has no parsable markup
    """
    try:
        if html:
            soup = BeautifulSoup(data, "lxml")
        else:
            soup = BeautifulSoup(expand_named_entities(data), "lxml-xml")
    except (ParserRejectedMarkup, etree.LxmlError) as e:
        raise ContentParseError(name, f"cannot parse content: {e}") from e
    if soup.find() is None:
        raise ContentParseError(name, "cannot parse content as markup")

    matches = sum(_apply_rule(soup, rule) for rule in rules)
    if not matches:
        return RewriteResult(matches=0, changed=False, content=data)
    return RewriteResult(matches=matches, changed=True, content=soup.encode("utf-8"))


def rewrite_xhtml_file(path: Path, rules: Sequence[CompiledRule], html: bool = False) -> RewriteResult:
    """Rewrite a single content file without writing it back."""
    return rewrite_xhtml(path.read_bytes(), rules, name=str(path), html=html)


def rewrite_package_metadata(data: bytes, rules: Sequence[CompiledRule]) -> RewriteResult:
    """Apply rules to Dublin Core text fields of a package document.

    Selector-scoped rules are skipped: selectors have no meaning here.
    """
    active = [rule for rule in rules if not rule.scoped]
    skipped = len(rules) - len(active)
    if skipped:
        logger.info("Skipping %d selector-scoped rule(s) in metadata scope", skipped)
    if not active:
        return RewriteResult(matches=0, changed=False, content=data)

    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    root = etree.fromstring(data, parser)
    metadata = next((el for el in root if local_name(el.tag) == "metadata"), None)
    if metadata is None:
        return RewriteResult(matches=0, changed=False, content=data)

    matches = 0
    for element in metadata:
        if not isinstance(element.tag, str):
            continue
        qname = etree.QName(element)
        if qname.namespace != DC_NS or qname.localname in PROTECTED_DC_FIELDS:
            continue
        if not element.text:
            continue
        for rule in active:
            count = element.text.count(rule.find)
            if count:
                matches += count
                element.text = element.text.replace(rule.find, rule.replace)

    if not matches:
        return RewriteResult(matches=0, changed=False, content=data)
    content = etree.tostring(root, xml_declaration=True, encoding="UTF-8")
    return RewriteResult(matches=matches, changed=True, content=content)


def iter_content_files(volume: Volume):
    """Yield (item, path) for every XHTML or HTML content document except the nav."""
    for item in volume.package.manifest.items:
        if item.has_property("nav") or item.media_type not in CONTENT_MEDIA_TYPES:
            continue
        yield item, resolve_href(volume.package_dir, item.href)


def _write(path: Path, content: bytes) -> None:
    try:
        path.write_bytes(content)
    except OSError as e:
        raise WriteError(f"cannot write {path}: {e}") from e


def _rewrite_body(
    volume: Volume,
    rules: Sequence[CompiledRule],
    stats: RewriteStats,
    dry_run: bool,
    check_interrupt: Callable[[], bool] | None,
) -> None:
    for item, path in iter_content_files(volume):
        raise_if_interrupted(check_interrupt)
        href = item.href
        if not path.is_file():
            logger.warning("%s: content file %s is missing, skipping", volume.source_path, href)
            continue
        result = rewrite_xhtml_file(path, rules, html=item.media_type == HTML_MEDIA_TYPE)
        stats.match_count += result.matches
        if not result.changed:
            continue
        stats.files_changed += 1
        stats.changed_files.append(href)
        logger.debug("%s: %d match(es)", href, result.matches)
        if not dry_run:
            _write(path, result.content)


def _rewrite_meta(volume: Volume, rules: Sequence[CompiledRule], stats: RewriteStats, dry_run: bool) -> None:
    result = rewrite_package_metadata(volume.package_path.read_bytes(), rules)
    stats.match_count += result.matches
    if not result.changed:
        return
    stats.files_changed += 1
    stats.changed_files.append(volume.package_path.relative_to(volume.temp_dir).as_posix())
    if not dry_run:
        _write(volume.package_path, result.content)


def rewrite_epub(
    source: Path | str,
    options: RewriteOptions,
    check_interrupt: Callable[[], bool] | None = None,
) -> RewriteStats:
    """Apply rewrite rules to an EPUB and repackage it.

    Without ``options.out_path`` the source is rewritten in place. A dry run
    computes the same statistics without writing anything.

    Raises:
        InputError: If no rules are given
        RuleError: If a rule fails to compile
        ArchiveError: If the archive cannot be opened
        ContentParseError: If a content document cannot be parsed
        WriteError: If the output cannot be written
        Interrupted: If check_interrupt signalled cancellation
    """
    if not options.rules:
        raise InputError("at least one rewrite rule is required")
    rules = compile_rules(options.rules)
    source = Path(source)
    out_path = Path(options.out_path) if options.out_path else source
    stats = RewriteStats(dry_run=options.dry_run)

    with ExitStack() as cleanup:
        volume = load_volume(0, source, check_interrupt)
        cleanup.callback(volume.release)

        if options.scope == RewriteScope.META:
            _rewrite_meta(volume, rules, stats, options.dry_run)
        else:
            _rewrite_body(volume, rules, stats, options.dry_run, check_interrupt)

        if not options.dry_run:
            raise_if_interrupted(check_interrupt)
            mimetype = volume.temp_dir / MIMETYPE_FILE
            if not mimetype.is_file():
                _write(mimetype, EPUB_MIMETYPE.encode("ascii"))
            write_epub_archive(volume.temp_dir, out_path)

    logger.info(
        "Rewrite of %s: %d match(es) in %d file(s)%s",
        source,
        stats.match_count,
        stats.files_changed,
        " (dry run)" if options.dry_run else "",
    )
    return stats
