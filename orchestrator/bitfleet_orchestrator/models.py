"""Pydantic models exchanged with the control API and the automation layer."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

if TYPE_CHECKING:
    from .config import SessionDefaults

ProxyType = Literal["noproxy", "http", "https", "socks5", "ssh"]


class _CamelModel(BaseModel):
    # The control API speaks camelCase; Python callers may use either form.
    model_config = ConfigDict(populate_by_name=True)


class BrowserFingerprint(_CamelModel):
    """Fingerprint settings; only the core version is interpreted here."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    core_version: str = Field(default="124", alias="coreVersion")


class BrowserCreateRequest(_CamelModel):
    """Options for creating a browser session.

    ``None`` means "use the configured default".  The control API receives a
    fully populated payload built by :meth:`with_defaults`.
    """

    name: str | None = None
    remark: str | None = None
    # 2 = custom proxy, 3 = extracted IP
    proxy_method: int | None = Field(default=None, alias="proxyMethod")
    proxy_type: ProxyType | None = Field(default=None, alias="proxyType")
    host: str | None = None
    port: int | str | None = None
    proxy_user_name: str | None = Field(default=None, alias="proxyUserName")
    proxy_password: str | None = Field(default=None, alias="proxyPassword")
    browser_finger_print: BrowserFingerprint | None = Field(
        default=None, alias="browserFingerPrint"
    )

    def with_defaults(self, defaults: "SessionDefaults") -> "BrowserCreateRequest":
        """Return a copy where every omitted field carries its default."""

        fingerprint = self.browser_finger_print or BrowserFingerprint(
            core_version=defaults.core_version
        )
        return BrowserCreateRequest(
            name=self.name or defaults.name,
            remark=self.remark if self.remark is not None else defaults.remark,
            proxy_method=self.proxy_method if self.proxy_method is not None else defaults.proxy_method,
            proxy_type=self.proxy_type or defaults.proxy_type,
            host=self.host if self.host is not None else "",
            port=self.port if self.port is not None else "",
            proxy_user_name=self.proxy_user_name if self.proxy_user_name is not None else "",
            proxy_password=self.proxy_password,
            browser_finger_print=fingerprint,
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class BrowserUpdateRequest(_CamelModel):
    """Bulk partial update; unset fields never reach the wire."""

    ids: list[str]
    remark: str | None = None
    browser_finger_print: BrowserFingerprint | None = Field(
        default=None, alias="browserFingerPrint"
    )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ApiResponse(BaseModel):
    """Envelope returned by every control API endpoint."""

    success: bool
    message: str | None = None
    data: Any = None


class OpenResult(_CamelModel):
    """Raw fields reported by ``/browser/open``."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    http: str | None = None
    ws: str | None = None
    driver: str | None = None
    pid: Any = None
    seq: Any = None
    core_version: str | int | None = Field(default=None, alias="coreVersion")


class DebugInfo(_CamelModel):
    """Resolved attachment data for an opened session."""

    driver_path: str | None = Field(default=None, alias="driverPath")
    debugger_address: str = Field(alias="debuggerAddress")
    chrome_port: str = Field(default="", alias="chromePort")


class ViewportSize(BaseModel):
    width: Annotated[int, Field(gt=0)]
    height: Annotated[int, Field(gt=0)]


class ConnectOptions(BaseModel):
    """Options forwarded to ``connect_over_cdp`` and applied to the page."""

    # ``None`` keeps whatever size the remote window already has.
    default_viewport: ViewportSize | None = None
    timeout: Annotated[float | None, Field(ge=0)] = None
    slow_mo: Annotated[float | None, Field(ge=0)] = None
    headers: dict[str, str] | None = None


class ConnectionConfig(BaseModel):
    """Automation connection settings.

    Overrides follow one rule: ``connect_option`` and ``custom_config`` are
    merged key by key, every other field is replaced outright.
    """

    model_config = ConfigDict(extra="forbid")

    headless: bool = False
    args: list[str] = Field(default_factory=lambda: ["--start-maximized"])
    turnstile: bool = True
    custom_config: dict[str, Any] = Field(default_factory=dict)
    connect_option: ConnectOptions = Field(default_factory=ConnectOptions)
    browser_ws_endpoint: str | None = None
    browser_url: str | None = None
    # The browser already runs remotely: never launch one, never start Xvfb.
    ignore_launch: bool = False
    disable_xvfb: bool = False

    def merged(self, overrides: Mapping[str, Any] | None = None) -> "ConnectionConfig":
        """Return a new config with ``overrides`` applied."""

        overrides = dict(overrides or {})
        unknown = sorted(set(overrides) - set(type(self).model_fields))
        if unknown:
            raise ValidationError(f"Unknown connection options: {', '.join(unknown)}")

        data = self.model_dump()
        for key, value in overrides.items():
            if key in _MERGED_FIELDS and value is not None:
                incoming = (
                    value.model_dump(exclude_unset=True)
                    if isinstance(value, BaseModel)
                    else dict(value)
                )
                data[key] = {**(data.get(key) or {}), **incoming}
            else:
                data[key] = value
        try:
            return ConnectionConfig.model_validate(data)
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid connection options: {exc}") from exc

    def for_endpoint(self, ws_endpoint: str) -> "ConnectionConfig":
        """Pin the config to ``ws_endpoint`` and disable local launching."""

        return self.model_copy(
            update={
                "browser_ws_endpoint": ws_endpoint,
                "browser_url": None,
                "ignore_launch": True,
                "disable_xvfb": True,
            }
        )


_MERGED_FIELDS = frozenset({"connect_option", "custom_config"})


__all__ = [
    "ApiResponse",
    "BrowserCreateRequest",
    "BrowserFingerprint",
    "BrowserUpdateRequest",
    "ConnectOptions",
    "ConnectionConfig",
    "DebugInfo",
    "OpenResult",
    "ProxyType",
    "ViewportSize",
]
