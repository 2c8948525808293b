"""Build the HTML file list shown on 404 pages"""
import logging
import os
from urllib.parse import quote

from tornado.escape import xhtml_escape

logger = logging.getLogger(__name__)

LISTED_EXTENSION = ".html"


def path_sort_key(path, sep=os.sep):
    """Sort key grouping paths by directory.

    Segments compare case-insensitively; inside a directory its files
    come before its subdirectories.
    """
    segments = path.split(sep)
    key = [(1, segment.upper(), segment) for segment in segments[:-1]]
    key.append((0, segments[-1].upper(), segments[-1]))
    return key


def _log_walk_error(err):
    logger.warning(f"[FILELIST] Skipping {getattr(err, 'filename', '?')}: {err}")


def get_items(root):
    """Collect absolute paths of all HTML files below root"""
    items = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_log_walk_error):
        dirnames.sort()
        for name in sorted(filenames):
            if os.path.splitext(name)[1] == LISTED_EXTENSION:
                items.append(os.path.join(dirpath, name))
    return items


def to_html(root, items):
    lines = []
    for item in items:
        short = os.path.relpath(item, root)
        depth = short.count(os.sep)
        if os.altsep:
            depth += short.count(os.altsep)
        href = "/" + short.replace("\\", "/")
        lines.append(
            f'<a href="{xhtml_escape(quote(href))}" class="depth--{depth}">{xhtml_escape(short)}</a><br/>'
        )
    return "\n".join(lines)


def get_file_list(root):
    """Render every HTML file under root as a sorted list of links"""
    root = os.path.abspath(root)
    items = sorted(get_items(root), key=path_sort_key)
    logger.debug(f"[FILELIST] {len(items)} files listed under {root}")
    return to_html(root, items)
