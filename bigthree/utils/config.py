# bigthree/utils/config.py
import copy
import logging
import os
import yaml

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/defaults.yaml"

DEFAULTS = {
    "sign_lang": "fr",
    "cors": {
        "allow_origin": "https://www.monologueworld.com",
    },
    "geocoder": {
        "user_agent": "Monologueworld-quiz/1.0",
        "timeout_s": 10.0,
    },
    "ephemeris": {
        "kernel": "de440s.bsp",
        "path": None,
        "data_dir": "/tmp/skyfield-data",
    },
}

# env var -> (section, key) ; section None means top level
_ENV_OVERRIDES = {
    "BIGTHREE_SIGN_LANG": (None, "sign_lang"),
    "CORS_ALLOW_ORIGIN": ("cors", "allow_origin"),
    "BIGTHREE_GEOCODER_USER_AGENT": ("geocoder", "user_agent"),
    "BIGTHREE_GEOCODER_TIMEOUT": ("geocoder", "timeout_s"),
    "BIGTHREE_EPHEMERIS_NAME": ("ephemeris", "kernel"),
    "BIGTHREE_EPHEMERIS": ("ephemeris", "path"),
    "BIGTHREE_EPHEMERIS_DIR": ("ephemeris", "data_dir"),
}

class AttrDict(dict):
    """Dict that also supports attribute access: cfg.cors and cfg['cors'] both work."""
    def __getattr__(self, item):
        try:
            return self[item]
        except KeyError as e:
            raise AttributeError(item) from e
    def __setattr__(self, key, value):
        self[key] = value

def _to_attr(obj):
    if isinstance(obj, dict):
        return AttrDict({k: _to_attr(v) for k, v in obj.items()})
    if isinstance(obj, list):
        return [_to_attr(x) for x in obj]
    return obj

def _merge(base, extra):
    out = dict(base)
    for k, v in (extra or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out

def load_config(path: str = None):
    """
    Load YAML config from `path` (default $BIGTHREE_CONFIG or config/defaults.yaml)
    on top of the built-in DEFAULTS, then apply env overrides:
      - BIGTHREE_SIGN_LANG, CORS_ALLOW_ORIGIN
      - BIGTHREE_GEOCODER_USER_AGENT, BIGTHREE_GEOCODER_TIMEOUT
      - BIGTHREE_EPHEMERIS_NAME, BIGTHREE_EPHEMERIS, BIGTHREE_EPHEMERIS_DIR
    A missing file is not an error (defaults apply). Returns an AttrDict.
    """
    path = path or os.environ.get("BIGTHREE_CONFIG", DEFAULT_CONFIG_PATH)
    data = {}
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"config file {path} must contain a mapping")
    else:
        log.info("config file %s not found; using built-in defaults", path)

    data = _merge(copy.deepcopy(DEFAULTS), data)

    for env, (section, key) in _ENV_OVERRIDES.items():
        val = os.getenv(env)
        if val is None or val == "":
            continue
        target = data if section is None else data.setdefault(section, {})
        target[key] = val

    data["geocoder"]["timeout_s"] = float(data["geocoder"]["timeout_s"])
    return _to_attr(data)
