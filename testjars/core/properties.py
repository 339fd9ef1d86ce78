"""Dynamic properties derived from a running application.

A dynamic property is a name plus a supplier. Nothing is evaluated until the
consumer asks for the value, at which point the supplier usually starts the
application and waits for its port.

Example:
    >>> issuer = oauth2_issuer_uri(auth_server, "spring")
    >>> register_properties([issuer], lambda name, value: config.setdefault(name, value()))
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Protocol

Supplier = Callable[[], Any]


class PortSource(Protocol):
    """Anything that can report the port an application listens on."""

    def get_port(self) -> int: ...


@dataclass(frozen=True)
class DynamicProperty:
    """A lazily evaluated property.

    Attributes:
        name: Property name, e.g. ``spring.cloud.config.uri``.
        supplier: Zero-argument callable producing the value.

    """

    name: str
    supplier: Supplier

    @property
    def value(self) -> Any:
        """Evaluate the supplier now."""
        return self.supplier()


def dynamic_port_url(
    source: PortSource,
    name: str,
    host: str = "localhost",
    context_root: str = "",
) -> DynamicProperty:
    """``http://<host>:<port><context_root>`` for the application's port."""
    return DynamicProperty(
        name, lambda: f"http://{host}:{source.get_port()}{context_root}"
    )


def cloud_config_uri(source: PortSource, host: str = "localhost") -> DynamicProperty:
    """Point a client at a Config Server started by the harness."""
    return dynamic_port_url(source, "spring.cloud.config.uri", host=host)


def oauth2_issuer_uri(
    source: PortSource, provider: str = "spring", host: str = "localhost"
) -> DynamicProperty:
    """Issuer URI of an authorization server started by the harness."""
    return dynamic_port_url(
        source,
        f"spring.security.oauth2.client.provider.{provider}.issuer-uri",
        host=host,
    )


def register_properties(
    properties: Iterable[DynamicProperty], sink: Callable[[str, Supplier], Any]
) -> None:
    """Hand each ``(name, supplier)`` pair to the sink without evaluating it."""
    for prop in properties:
        sink(prop.name, prop.supplier)
