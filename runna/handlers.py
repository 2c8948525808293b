"""Request handlers for the main application"""
import logging
import mimetypes
import os

from tornado.web import RequestHandler, StaticFileHandler

from .auth import CHALLENGE, DENIED_MESSAGE, authorize
from .filelist import get_file_list

logger = logging.getLogger(__name__)

STATIC_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "static")
STATIC_FRAGMENT = "__static"
INJECT = f'\n<script src="/{STATIC_FRAGMENT}/reload.js"></script>'
TEMPLATE_TOKEN = "$DATA"


def resolve_path(root, path):
    """Join path onto root, None if the result escapes root"""
    root = os.path.abspath(root)
    local_path = os.path.abspath(os.path.join(root, path))
    if os.path.commonpath([root, local_path]) != root:
        return None
    return local_path


def read_text(path):
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


class GateMixin:
    """Runs the access gate before any handler method"""

    def prepare(self):
        header = self.request.headers.get("Authorization")
        if authorize(header, self.context.config.credential):
            return

        logger.debug(f"[SERVER] Access denied for {self.request.path}")
        self.set_status(401)
        self.set_header("WWW-Authenticate", CHALLENGE)
        self.set_header("Content-Type", "text/plain; charset=UTF-8")
        self.finish(DENIED_MESSAGE)


class StaticAssetHandler(GateMixin, StaticFileHandler):
    """Bundled support files (reload client, listing template)"""

    def initialize(self, context):
        super().initialize(path=STATIC_PATH)
        self.context = context


class ReloadHandler(GateMixin, RequestHandler):
    def initialize(self, context):
        self.context = context

    async def trigger(self):
        try:
            await self.finish()
        finally:
            self.context.reload_clients()

    get = post = put = delete = patch = head = options = trigger


class ExitHandler(GateMixin, RequestHandler):
    def initialize(self, context):
        self.context = context

    async def trigger(self):
        logger.info("[SERVER] Shutting down.")
        try:
            await self.finish()
        finally:
            self.context.shutdown()

    get = post = put = delete = patch = head = options = trigger


class ContentHandler(GateMixin, StaticFileHandler):
    """Serves the working directory.

    HTML pages get the reload script appended, other files are streamed
    as they are. Anything that does not resolve to a file below the root
    gets the 404 page listing every HTML file available.
    """

    def initialize(self, context):
        super().initialize(path=context.config.root)
        self.context = context
        self.absolute_path = None

    async def get(self, path, include_body=True):
        if not path or path.endswith("/"):
            path += "index.html"

        local_path = resolve_path(self.root, path)
        if local_path is None or not os.path.isfile(local_path):
            return self.send_not_found()

        if os.path.splitext(local_path)[1] != ".html":
            return await super().get(path, include_body)

        try:
            data = read_text(local_path)
        except OSError as e:
            logger.error(f"[SERVER] Unable to read {local_path}: {e}")
            return self.send_text_error(e)

        self.set_header("Content-Type", "text/html; charset=UTF-8")
        self.finish(data + INJECT if include_body else None)

    def send_not_found(self):
        try:
            template = read_text(self.context.template_path)
        except OSError as e:
            logger.error(f"[SERVER] Unable to read template: {e}")
            return self.send_text_error(e)

        html = get_file_list(self.root)
        self.set_status(404)
        self.set_header("Content-Type", "text/html; charset=UTF-8")
        self.finish(template.replace(TEMPLATE_TOKEN, html) + INJECT)

    def send_text_error(self, err):
        self.set_status(500)
        self.set_header("Content-Type", "text/plain; charset=UTF-8")
        self.finish(f"Error: {err}")

    def get_content_type(self):
        if mimetypes.guess_type(self.absolute_path) == (None, None):
            return "text/plain"
        return super().get_content_type()

    def compute_etag(self):
        # Files change under us, revalidation relies on Last-Modified.
        return None
