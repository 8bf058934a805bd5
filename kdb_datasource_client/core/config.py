"""
Connection settings of a kdb+ datasource instance.

Non-secret options travel in the host's `jsonData`; credentials and TLS
material travel in `secureJsonData`, which the host encrypts and never
returns. For those the host only reports `secureJsonFields`, a map of
which secrets are configured.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .models import DataSourceIdentity
from .settings import PLUGIN_TYPE
from ..exceptions import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)

PORT_INPUT_RE = re.compile(r'[0-9]+')

SECURE_KEYS = {
    'username': 'username',
    'password': 'password',
    'tls_certificate': 'tlsCertificate',
    'tls_key': 'tlsKey',
    'ca_cert': 'caCert',
}


def parse_port(value: Union[str, int, None]) -> Optional[int]:
    """Parse the port field. Empty means unset; anything but digits is rejected."""
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValidationError(f"Invalid port: {value!r}")
    if isinstance(value, int):
        port = value
    elif isinstance(value, str) and PORT_INPUT_RE.fullmatch(value):
        try:
            port = int(value, 10)
        except ValueError:
            raise ValidationError(f"Port out of range: {value[:10]}...")
    else:
        raise ValidationError(f"Invalid port: {value!r}")
    if not 1 <= port <= 65535:
        raise ValidationError(f"Port out of range: {port}")
    return port


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes')
    return bool(value)


@dataclass
class KdbDataSourceOptions:
    host: Optional[str] = None
    port: Optional[int] = None
    timeout: Optional[str] = None
    with_tls: bool = False
    skip_verify_tls: bool = False
    with_ca_cert: bool = False

    def to_json_data(self) -> Dict[str, Any]:
        data = {
            'withTLS': self.with_tls,
            'skipVerifyTLS': self.skip_verify_tls,
            'withCACert': self.with_ca_cert,
        }
        if self.host is not None:
            data['host'] = self.host
        if self.port is not None:
            data['port'] = self.port
        if self.timeout is not None:
            data['timeout'] = self.timeout
        return data

    @classmethod
    def from_json_data(cls, data: Dict[str, Any]) -> 'KdbDataSourceOptions':
        timeout = data.get('timeout')
        return cls(
            host=data.get('host'),
            port=parse_port(data.get('port')),
            timeout=None if timeout is None else str(timeout),
            with_tls=_as_bool(data.get('withTLS', False)),
            skip_verify_tls=_as_bool(data.get('skipVerifyTLS', False)),
            with_ca_cert=_as_bool(data.get('withCACert', False)),
        )


@dataclass
class KdbSecureJsonData:
    username: Optional[str] = None
    password: Optional[str] = None
    tls_certificate: Optional[str] = None
    tls_key: Optional[str] = None
    ca_cert: Optional[str] = None

    def to_secure_json_data(self) -> Dict[str, str]:
        """Only secrets that were supplied, so saving never clears a stored one"""
        return {wire: getattr(self, attr) for attr, wire in SECURE_KEYS.items()
                if getattr(self, attr) is not None}

    def __repr__(self):
        supplied = [attr for attr in SECURE_KEYS if getattr(self, attr) is not None]
        return f"KdbSecureJsonData(supplied={supplied})"


@dataclass
class KdbDataSourceSettings:
    name: str
    identity: DataSourceIdentity
    options: KdbDataSourceOptions = field(default_factory=KdbDataSourceOptions)
    secure: KdbSecureJsonData = field(default_factory=KdbSecureJsonData)
    secure_json_fields: Dict[str, bool] = field(default_factory=dict)

    def is_secret_configured(self, key: str) -> bool:
        """
        Whether a secret is set, either supplied locally or reported by the host.

        Args:
            key: attribute name (e.g. 'tls_key') or wire name (e.g. 'tlsKey')
        """
        attr = key if key in SECURE_KEYS else next(
            (a for a, wire in SECURE_KEYS.items() if wire == key), None)
        if attr is None:
            raise ValidationError(f"Unknown secure field '{key}'")
        if getattr(self.secure, attr):
            return True
        return bool(self.secure_json_fields.get(SECURE_KEYS[attr]))

    def missing_tls_material(self) -> List[str]:
        if not self.options.with_tls:
            return []
        required = ['tls_certificate', 'tls_key']
        if self.options.with_ca_cert:
            required.append('ca_cert')
        return [key for key in required if not self.is_secret_configured(key)]

    def to_grafana_payload(self) -> Dict[str, Any]:
        missing = self.missing_tls_material()
        if missing:
            logger.warning(f"TLS enabled for datasource '{self.name}' but missing: {missing}")
        payload = {
            'name': self.name,
            'type': PLUGIN_TYPE,
            'access': 'proxy',
            'jsonData': self.options.to_json_data(),
        }
        secure = self.secure.to_secure_json_data()
        if secure:
            payload['secureJsonData'] = secure
        if self.identity.uid:
            payload['uid'] = self.identity.uid
        return payload

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'KdbDataSourceSettings':
        """Build settings from the `kdb` section of the credentials file"""
        if not isinstance(config, dict):
            raise ConfigurationError("kdb datasource configuration must be a mapping")
        if 'id' not in config:
            raise ConfigurationError("kdb datasource configuration requires a numeric 'id'")
        try:
            identity = DataSourceIdentity(
                id=int(config['id']),
                uid=config.get('uid'),
                org_id=int(config['org_id']) if config.get('org_id') is not None else None,
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid datasource identity: {e}")

        try:
            options = KdbDataSourceOptions(
                host=config.get('host'),
                port=parse_port(config.get('port')),
                timeout=str(config['timeout']) if config.get('timeout') is not None else None,
                with_tls=_as_bool(config.get('with_tls', False)),
                skip_verify_tls=_as_bool(config.get('skip_verify_tls', False)),
                with_ca_cert=_as_bool(config.get('with_ca_cert', False)),
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid kdb datasource options: {e}")

        secure = KdbSecureJsonData(**{attr: config.get(attr) for attr in SECURE_KEYS})
        return cls(name=config.get('name', 'kdb'), identity=identity, options=options, secure=secure)

    @classmethod
    def from_grafana(cls, data: Dict[str, Any]) -> 'KdbDataSourceSettings':
        """Build settings from the host's datasource JSON (GET /api/datasources/uid/:uid)"""
        if data.get('type') and data['type'] != PLUGIN_TYPE:
            logger.warning(f"Datasource '{data.get('name')}' has type '{data['type']}', expected '{PLUGIN_TYPE}'")
        try:
            identity = DataSourceIdentity(
                id=int(data['id']),
                uid=data.get('uid'),
                org_id=int(data['orgId']) if data.get('orgId') is not None else None,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Datasource response has no usable id or orgId: {e}")
        return cls(
            name=data.get('name', ''),
            identity=identity,
            options=KdbDataSourceOptions.from_json_data(data.get('jsonData') or {}),
            secure_json_fields={k: bool(v) for k, v in (data.get('secureJsonFields') or {}).items()},
        )
