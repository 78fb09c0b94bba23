"""
Rotation configuration

Defaults match a stock UniFi Controller install fed by a UNMS/UISP
certificate. Values can be overridden from a YAML file and from
UNIFI_CERTSYNC_* environment variables.
"""

import os
import yaml

DEFAULT_CONFIG_FILE = '/etc/unifi-certsync.yaml'
CONFIG_FILE_ENV = 'UNIFI_CERTSYNC_CONFIG'
ENV_PREFIX = 'UNIFI_CERTSYNC_'

# The controller expects this alias and password in its keystore
DEFAULTS = {
    'cert_path': '/home/unms/data/cert/live.crt',
    'key_path': '/home/unms/data/cert/live.key',
    'store_dir': '/usr/lib/unifi/data',
    'service_name': 'unifi',
    'service_user': 'unifi',
    'log_path': '/root/unifi_cert_update.log',
    'store_password': 'aircontrolenterprise',
    'store_alias': 'unifi',
    'dry_run': False,
    'cron_schedule': '0 1 * * *',
    'schedule_enabled': True,
}

BOOL_FIELDS = ('dry_run', 'schedule_enabled')
TRUE_VALUES = ('1', 'true', 'yes', 'on')
FALSE_VALUES = ('0', 'false', 'no', 'off', '')


def parse_bool(value):
    """Parse a yes/no style flag"""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


class RotationConfig:
    """Everything the rotation workflow needs to know about the host"""

    def __init__(self, **overrides):
        unknown = set(overrides) - set(DEFAULTS)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        values = dict(DEFAULTS)
        values.update(overrides)
        for field, value in values.items():
            if field in BOOL_FIELDS:
                values[field] = parse_bool(value)
            else:
                # YAML turns bare numbers (e.g. a numeric password) into ints
                values[field] = str(value)
        for field, value in values.items():
            setattr(self, field, value)

    @property
    def keystore_path(self):
        return os.path.join(self.store_dir, 'keystore')

    @property
    def backup_path(self):
        return self.keystore_path + '.backup'

    @property
    def bundle_path(self):
        return os.path.join(self.store_dir, f'{self.store_alias}.p12')

    def as_dict(self):
        return {field: getattr(self, field) for field in DEFAULTS}

    def with_overrides(self, **overrides):
        values = self.as_dict()
        values.update(overrides)
        return RotationConfig(**values)

    def __repr__(self):
        shown = self.as_dict()
        shown['store_password'] = '<redacted>'
        return f"RotationConfig({shown})"

    @classmethod
    def from_sources(cls, config_file=None, environ=None):
        """Build the configuration from file and environment.

        The file comes from config_file, then $UNIFI_CERTSYNC_CONFIG, then
        /etc/unifi-certsync.yaml when it exists. Environment variables
        override file values.
        """
        environ = os.environ if environ is None else environ
        values = {}

        path = config_file or environ.get(CONFIG_FILE_ENV)
        if path:
            values.update(load_config_file(path))
        elif os.path.exists(DEFAULT_CONFIG_FILE):
            values.update(load_config_file(DEFAULT_CONFIG_FILE))

        values.update(load_env_overrides(environ))
        return cls(**values)


def load_config_file(path):
    """Load configuration keys from a YAML mapping"""
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    return data


def load_env_overrides(environ):
    """Collect UNIFI_CERTSYNC_<FIELD> variables"""
    overrides = {}
    for field in DEFAULTS:
        value = environ.get(ENV_PREFIX + field.upper())
        if value is not None:
            overrides[field] = value.strip()
    return overrides
