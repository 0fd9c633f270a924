"""HTTP intake adapter — decodes /ez requests into stats and hands them to the batcher."""

import logging
import math
import time

from flask import Flask, jsonify, request

from stat_batcher.batcher import Batcher
from stat_batcher.errors import InvalidValueError

logger = logging.getLogger(__name__)


class ParamError(ValueError):
    """Raised when a request parameter is missing, repeated, or malformed."""


def _single_arg(key: str) -> str:
    values = request.values.getlist(key)
    if not values:
        return ""
    if len(values) > 1:
        raise ParamError(f"too many values for {key}")
    return values[0]


def _required_param(key: str) -> str:
    value = _single_arg(key)
    if value == "":
        raise ParamError(f"no {key} specified")
    return value


def _float_param(key: str):
    """Return the parameter as a float, or None when it is absent.

    Infinities are rejected here; JSON cannot carry them to the ingestion API.
    NaN passes through so the batcher can report it as an invalid value.
    """
    value = _single_arg(key)
    if value == "":
        return None
    try:
        number = float(value)
    except ValueError:
        raise ParamError("invalid number") from None
    if math.isinf(number):
        raise ParamError("invalid number")
    return number


def _error(msg: str):
    logger.info("Rejected stat request: %s", msg)
    return jsonify({"status": 400, "msg": msg}), 400


def create_app(batcher: Batcher) -> Flask:
    """Flask application factory."""
    app = Flask(__name__)

    @app.route("/health")
    def health():
        return jsonify({"status": "healthy", "running": batcher.running})

    @app.route("/ez", methods=["GET", "POST"])
    def ez():
        try:
            ezkey = _required_param("ezkey")
            name = _required_param("stat")
            count = _float_param("count")
            value = _float_param("value")
            t = _float_param("t")
        except ParamError as exc:
            return _error(str(exc))

        if t is not None and not math.isfinite(t):
            return _error("invalid number")
        timestamp = int(t) if t is not None else int(time.time())

        try:
            if count is not None:
                batcher.post_count_time(name, count, timestamp, ezkey=ezkey)
            elif value is not None:
                batcher.post_value_time(name, value, timestamp, ezkey=ezkey)
            else:
                return _error("missing count or value")
        except InvalidValueError as exc:
            return _error(str(exc))

        return jsonify({"status": 200, "msg": "ok"})

    return app
