# client.py -- Implementation of the client side git protocols
# Copyright (C) 2026 The gitlet authors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# gitlet is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Client side of the smart HTTP git protocol.

Only what a fresh clone needs is implemented: discovering the refs of a
remote repository and fetching a pack containing the objects reachable from
a set of wanted commits, without negotiating common history.
"""

__all__ = [
    "HttpGitClient",
    "LsRemoteResult",
    "default_urllib3_manager",
    "default_user_agent_string",
    "read_pkt_refs_v1",
]

import logging
import os
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import TYPE_CHECKING
from urllib.parse import urljoin, urlparse

import gitlet

from .config import Config
from .errors import GitProtocolError, NotGitRepository
from .objects import ObjectID, valid_hexsha
from .protocol import (
    CAPABILITIES_REF,
    CAPABILITY_SYMREF,
    COMMAND_DONE,
    COMMAND_WANT,
    ZERO_SHA,
    Protocol,
    extract_capabilities,
    parse_capability,
    pkt_line,
)

if TYPE_CHECKING:
    import urllib3
    from urllib3.response import BaseHTTPResponse

logger = logging.getLogger(__name__)

UPLOAD_PACK_SERVICE = b"git-upload-pack"


def default_user_agent_string() -> str:
    """Return the default user agent string."""
    # Start user agent with "git/", because GitHub requires this.
    return "git/gitlet/{}".format(".".join([str(x) for x in gitlet.__version__]))


def read_pkt_refs_v1(
    pkt_seq: Iterable[bytes],
) -> tuple[dict[bytes, ObjectID], set[bytes]]:
    """Read references using protocol version 1.

    Returns: Tuple with a dict mapping ref names to hex SHAs and the set of
        capabilities advertised on the first line
    Raises:
      GitProtocolError: if the server sent an ``ERR`` line or a malformed ref
    """
    server_capabilities = None
    refs: dict[bytes, ObjectID] = {}
    for pkt in pkt_seq:
        try:
            (sha, ref) = pkt.rstrip(b"\n").split(None, 1)
        except ValueError as exc:
            raise GitProtocolError(f"invalid ref line {pkt!r}") from exc
        if sha == b"ERR":
            raise GitProtocolError(ref.decode("utf-8", "replace"))
        if server_capabilities is None:
            (ref, server_capabilities) = extract_capabilities(ref)
        if not valid_hexsha(sha):
            raise GitProtocolError(f"invalid object id {sha!r} for ref {ref!r}")
        refs[ref] = sha

    if len(refs) == 0:
        return {}, set()
    if refs == {CAPABILITIES_REF: ZERO_SHA}:
        refs = {}
    assert server_capabilities is not None
    return refs, set(server_capabilities)


def _extract_symrefs(capabilities: Iterable[bytes]) -> dict[bytes, bytes]:
    symrefs = {}
    for capability in capabilities:
        k, v = parse_capability(capability)
        if k == CAPABILITY_SYMREF and v is not None:
            (src, dst) = v.split(b":", 1)
            symrefs[src] = dst
    return symrefs


class LsRemoteResult:
    """Result of a ref discovery.

    Attributes:
      refs: Dictionary mapping ref names to hex SHAs
      symrefs: Dictionary mapping symbolic ref names (``HEAD``) to their
        targets, as advertised by the server
      capabilities: Set of capabilities the server advertised
    """

    def __init__(
        self,
        refs: dict[bytes, ObjectID],
        symrefs: dict[bytes, bytes],
        capabilities: set[bytes] | None = None,
    ) -> None:
        self.refs = refs
        self.symrefs = symrefs
        self.capabilities = capabilities or set()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LsRemoteResult):
            return False
        return self.refs == other.refs and self.symrefs == other.symrefs

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.refs!r}, {self.symrefs!r})"


def default_urllib3_manager(
    config: Config | None,
    pool_manager_cls: type | None = None,
    proxy_manager_cls: type | None = None,
    timeout: float | None = None,
) -> "urllib3.ProxyManager | urllib3.PoolManager":
    """Return urllib3 connection pool manager.

    Honour detected proxy configurations.

    Args:
      config: Git configuration; ``http.proxy``, ``http.useragent``,
        ``http.sslVerify`` and ``http.timeout`` are honoured.
      pool_manager_cls: Pool manager class to use
      proxy_manager_cls: Proxy manager class to use
      timeout: Timeout for HTTP requests in seconds

    Returns:
      Either proxy_manager_cls (defaults to `urllib3.ProxyManager`) instance
      for proxy configurations, pool_manager_cls (defaults to
      `urllib3.PoolManager`) instance otherwise
    """
    proxy_server: str | None = None
    user_agent: str | None = None
    ssl_verify = True

    for proxyname in ("https_proxy", "http_proxy", "all_proxy"):
        proxy_server = os.environ.get(proxyname)
        if proxy_server:
            break

    if config is not None:
        try:
            proxy_server = config.get(b"http", b"proxy").decode("utf-8")
        except KeyError:
            pass
        try:
            user_agent = config.get(b"http", b"useragent").decode("utf-8")
        except KeyError:
            pass
        ssl_verify = config.get_boolean(b"http", b"sslVerify", True)
        if timeout is None:
            try:
                timeout = float(config.get(b"http", b"timeout").decode("utf-8"))
            except KeyError:
                pass

    if user_agent is None:
        user_agent = default_user_agent_string()

    headers = {"User-agent": user_agent}

    kwargs: dict[str, str | float] = {
        "cert_reqs": "CERT_REQUIRED" if ssl_verify else "CERT_NONE",
    }
    if timeout is not None:
        kwargs["timeout"] = timeout

    import urllib3

    manager: urllib3.ProxyManager | urllib3.PoolManager
    if proxy_server:
        if proxy_manager_cls is None:
            proxy_manager_cls = urllib3.ProxyManager
        proxy_server_url = urlparse(proxy_server)
        if proxy_server_url.username is not None:
            proxy_headers = urllib3.make_headers(
                proxy_basic_auth=f"{proxy_server_url.username}:{proxy_server_url.password or ''}"
            )
        else:
            proxy_headers = {}
        manager = proxy_manager_cls(
            proxy_server, proxy_headers=proxy_headers, headers=headers, **kwargs
        )
    else:
        if pool_manager_cls is None:
            pool_manager_cls = urllib3.PoolManager
        manager = pool_manager_cls(headers=headers, **kwargs)

    return manager


def _wrap_urllib3_exceptions(
    func: Callable[..., bytes],
) -> Callable[..., bytes]:
    from urllib3.exceptions import HTTPError

    def wrapper(*args: object, **kwargs: object) -> bytes:
        try:
            return func(*args, **kwargs)
        except HTTPError as error:
            raise GitProtocolError(str(error)) from error

    return wrapper


class HttpGitClient:
    """Git client that talks the smart HTTP protocol using urllib3."""

    def __init__(
        self,
        base_url: str,
        pool_manager: "urllib3.PoolManager | None" = None,
        config: Config | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize HttpGitClient.

        Args:
          base_url: URL of the remote repository
          pool_manager: Optional urllib3 PoolManager for HTTP(S) connections
          config: Optional configuration used to build the pool manager
          timeout: Timeout for HTTP requests in seconds
        """
        self._base_url = base_url.rstrip("/") + "/"
        self._timeout = timeout
        if pool_manager is None:
            self.pool_manager = default_urllib3_manager(config, timeout=timeout)
        else:
            self.pool_manager = pool_manager
        self.config = config

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._base_url!r})"

    def get_url(self) -> str:
        """Get the URL of the remote repository."""
        return self._base_url.rstrip("/")

    def _http_request(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        data: bytes | Iterator[bytes] | None = None,
    ) -> tuple["BaseHTTPResponse", Callable[[int], bytes]]:
        """Perform HTTP request.

        Args:
          url: Request URL.
          headers: Optional custom headers to override defaults.
          data: Request data; a POST is sent when given, a GET otherwise.

        Returns:
          Tuple (response, read), where response is an urllib3
          response object and read is a consumable read method for the
          response data.

        Raises:
          NotGitRepository: if the server answers 404
          GitProtocolError: on transport failures and other non-200 answers
        """
        import urllib3.exceptions

        req_headers = dict(self.pool_manager.headers)
        if headers is not None:
            req_headers.update(headers)
        req_headers["Pragma"] = "no-cache"

        request_kwargs: dict[str, object] = {
            "headers": req_headers,
            "preload_content": False,
        }
        if self._timeout is not None:
            request_kwargs["timeout"] = self._timeout
        logger.debug("%s %s", "GET" if data is None else "POST", url)
        try:
            if data is None:
                resp = self.pool_manager.request("GET", url, **request_kwargs)  # type: ignore[arg-type]
            else:
                request_kwargs["body"] = data
                resp = self.pool_manager.request("POST", url, **request_kwargs)  # type: ignore[arg-type]
        except urllib3.exceptions.HTTPError as e:
            raise GitProtocolError(str(e)) from e

        if resp.status == 404:
            resp.close()
            raise NotGitRepository(f"{self.get_url()} is not a git repository")
        if resp.status != 200:
            resp.close()
            raise GitProtocolError(f"unexpected http resp {resp.status} for {url}")

        return resp, _wrap_urllib3_exceptions(resp.read)

    def _discover_references(self) -> LsRemoteResult:
        url = urljoin(self._base_url, "info/refs")
        url += "?service=" + UPLOAD_PACK_SERVICE.decode("ascii")
        resp, read = self._http_request(url, {"Accept": "*/*"})
        try:
            content_type = resp.headers.get("Content-Type")
            if content_type is None or not content_type.startswith(
                "application/x-git-"
            ):
                raise GitProtocolError(
                    f"{self.get_url()} does not speak the smart HTTP protocol "
                    f"(content type {content_type!r})"
                )
            proto = Protocol(read, lambda data: None)
            try:
                [pkt] = list(proto.read_pkt_seq())
            except ValueError as exc:
                raise GitProtocolError("unexpected number of packets received") from exc
            if pkt.rstrip(b"\n") != (b"# service=" + UPLOAD_PACK_SERVICE):
                raise GitProtocolError(f"unexpected first line {pkt!r} from smart server")
            refs, server_capabilities = read_pkt_refs_v1(proto.read_pkt_seq())
        finally:
            resp.close()
        return LsRemoteResult(
            refs, _extract_symrefs(server_capabilities), server_capabilities
        )

    def get_refs(self) -> LsRemoteResult:
        """Retrieve the current refs from a git smart server."""
        result = self._discover_references()
        logger.debug("discovered %d refs at %s", len(result.refs), self.get_url())
        return result

    def _smart_request(
        self, service: str, data: bytes
    ) -> tuple["BaseHTTPResponse", Callable[[int], bytes]]:
        """Send a 'smart' HTTP request.

        This is a simple wrapper around _http_request that sets
        a couple of extra headers.
        """
        url = urljoin(self._base_url, service)
        result_content_type = f"application/x-{service}-result"
        headers = {
            "Content-Type": f"application/x-{service}-request",
            "Accept": result_content_type,
            "Content-Length": str(len(data)),
        }
        resp, read = self._http_request(url, headers, data)
        content_type = resp.headers.get("Content-Type")
        if not content_type or content_type.split(";")[0] != result_content_type:
            resp.close()
            raise GitProtocolError(f"Invalid content-type from server: {content_type}")
        return resp, read

    def fetch_pack(
        self, wants: Sequence[ObjectID]
    ) -> tuple["BaseHTTPResponse", Callable[[int], bytes]]:
        """Request a pack containing everything reachable from wants.

        No capabilities are requested, so the server answers with a single
        ``NAK`` pkt-line followed by the raw pack stream.

        Args:
          wants: Hex SHAs of the commits to fetch
        Returns: Tuple (response, read) where read is positioned at the
            start of the pack header. The caller must close the response.
        Raises:
          GitProtocolError: if the server does not acknowledge the request
        """
        if not wants:
            raise ValueError("at least one object must be wanted")
        body = b"".join(pkt_line(COMMAND_WANT + b" " + want + b"\n") for want in wants)
        body += pkt_line(None) + pkt_line(COMMAND_DONE + b"\n")
        resp, read = self._smart_request(UPLOAD_PACK_SERVICE.decode("ascii"), body)
        try:
            proto = Protocol(read, lambda data: None)
            pkt = proto.read_pkt_line()
            if pkt is None or pkt.rstrip(b"\n") != b"NAK":
                if pkt is not None and pkt.startswith(b"ERR "):
                    raise GitProtocolError(pkt[4:].rstrip(b"\n").decode("utf-8", "replace"))
                raise GitProtocolError(f"expected NAK from server, got {pkt!r}")
        except BaseException:
            resp.close()
            raise
        return resp, read
