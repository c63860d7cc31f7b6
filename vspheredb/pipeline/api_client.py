"""vSphere API client.

Thin pyVmomi wrapper offering the single operation the synchronization
needs: collect all objects of one managed type with a given property set,
using a ContainerView over the root folder and the PropertyCollector with
paginated retrieval.
"""
from __future__ import annotations

import logging
import ssl
from typing import Any, Dict, List, Optional, Sequence

from pyVim.connect import Disconnect, SmartConnect
from pyVmomi import vim, vmodl

from ..core.config import settings
from .object_types import RemoteObject


LOG = logging.getLogger(__name__)

DEFAULT_PORTS = {"https": 443, "http": 80}


def _ssl_context(verify_ssl: bool) -> ssl.SSLContext:
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    if verify_ssl:
        context.load_default_certs()
    else:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def _split_host(host: str, scheme: str) -> tuple:
    name, sep, port = host.rpartition(":")
    if sep and port.isdigit():
        return name, int(port)
    return host, DEFAULT_PORTS.get(scheme, 443)


def _vanished(oc) -> bool:
    """True when the collector reports the object itself as gone.

    Other entries in missingSet concern single properties (no access,
    not set) and only leave those properties out.
    """
    return any(isinstance(m.fault, vmodl.fault.ManagedObjectNotFound) for m in (oc.missingSet or []))


def _parse_object_content(oc) -> RemoteObject:
    props = {p.name: p.val for p in (oc.propSet or [])}
    return RemoteObject(id=str(oc.obj._moId), properties=props)


class VSphereApi:
    """Connection to one vCenter or standalone ESXi host."""

    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        scheme: str = "https",
        verify_ssl: bool = True,
        page_size: Optional[int] = None,
        timeout: Optional[int] = None,
    ) -> None:
        self.host = host
        self.username = username
        self.password = password
        self.scheme = scheme
        self.verify_ssl = verify_ssl
        self.page_size = page_size or settings.API_PAGE_SIZE
        self.timeout = timeout or settings.API_TIMEOUT
        self._si = None

    @classmethod
    def from_server(cls, server: Dict[str, Any]) -> "VSphereApi":
        """Build a client from a `vcenter_server` dict (including password)."""
        return cls(
            host=server["host"],
            username=server["username"],
            password=server["password"],
            scheme=server.get("scheme") or "https",
            verify_ssl=bool(server.get("ssl_verify", settings.VERIFY_SSL)),
        )

    def connect(self) -> "VSphereApi":
        if self._si is not None:
            return self
        name, port = _split_host(self.host, self.scheme)
        LOG.info("Connecting to %s://%s:%d as %s", self.scheme, name, port, self.username)
        self._si = SmartConnect(
            protocol=self.scheme,
            host=name,
            port=port,
            user=self.username,
            pwd=self.password,
            sslContext=_ssl_context(self.verify_ssl),
            httpConnectionTimeout=self.timeout,
        )
        return self

    def disconnect(self) -> None:
        if self._si is None:
            return
        try:
            Disconnect(self._si)
        finally:
            self._si = None

    def __enter__(self) -> "VSphereApi":
        return self.connect()

    def __exit__(self, *exc_info) -> None:
        self.disconnect()

    @property
    def content(self):
        if self._si is None:
            self.connect()
        return self._si.RetrieveContent()

    def about(self) -> Dict[str, Any]:
        """Return identity information of the connected endpoint."""
        about = self.content.about
        return {
            "instance_uuid": about.instanceUuid,
            "name": about.fullName or about.name,
            "version": about.version,
            "api_type": about.apiType,
        }

    def collect_object_properties(self, type_name: str, path_set: Sequence[str]) -> List[RemoteObject]:
        """Return every object of `type_name` with the requested properties.

        Objects deleted while the collector pages through the result are
        skipped.
        """
        managed_type = getattr(vim, type_name)
        content = self.content
        view_ref = content.viewManager.CreateContainerView(
            container=content.rootFolder,
            type=[managed_type],
            recursive=True,
        )
        try:
            traversal_spec = vim.PropertyCollector.TraversalSpec(
                name="viewTraversal",
                type=vim.view.ContainerView,
                path="view",
                skip=False,
            )
            obj_spec = vim.PropertyCollector.ObjectSpec(obj=view_ref, selectSet=[traversal_spec], skip=True)
            prop_spec = vim.PropertyCollector.PropertySpec(type=managed_type, pathSet=list(path_set), all=False)
            filter_spec = vim.PropertyCollector.FilterSpec(objectSet=[obj_spec], propSet=[prop_spec])

            pc = content.propertyCollector
            options = vim.PropertyCollector.RetrieveOptions(maxObjects=self.page_size)
            result = pc.RetrievePropertiesEx(specSet=[filter_spec], options=options)

            objects: List[RemoteObject] = []
            while result is not None:
                for oc in result.objects or []:
                    if _vanished(oc):
                        LOG.debug("%s %s vanished during fetch", type_name, oc.obj._moId)
                        continue
                    objects.append(_parse_object_content(oc))
                if not result.token:
                    break
                result = pc.ContinueRetrievePropertiesEx(result.token)
        finally:
            view_ref.Destroy()

        LOG.debug("PropertyCollector fetched %d %s objects", len(objects), type_name)
        return objects


__all__ = ["VSphereApi"]
