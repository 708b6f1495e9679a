from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from deepl_wrapper.core.config import settings
from deepl_wrapper.core.credentials import DEEPL_API_KEY_HEADER
from deepl_wrapper.core.request_context import get_request_context

API_KEY_PREFIX_LEN = 8


def get_api_key_or_ip(request: Request) -> str:
    """
    Bucket callers by their DeepL key in caller mode, by client IP otherwise.
    In server mode the header is not used for authentication, so it must not
    select the bucket either.
    """
    resolver = getattr(request.app.state, "credential_resolver", None)
    if resolver is not None and resolver.mode == "caller":
        api_key = request.headers.get(DEEPL_API_KEY_HEADER)
        if api_key and api_key.strip():
            return f"api_key:{api_key.strip()[:API_KEY_PREFIX_LEN]}"
    return get_remote_address(request)


def translate_rate_limit() -> str:
    """Limit for `POST /translate`, taken from the settings of the app serving the request."""
    ctx = get_request_context()
    if ctx is not None and ctx.app_settings is not None:
        return ctx.app_settings.TRANSLATE_RATE_LIMIT
    return settings.TRANSLATE_RATE_LIMIT


limiter = Limiter(key_func=get_api_key_or_ip)
