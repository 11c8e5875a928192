"""
Remote function invocation
Email and SMS delivery run as named functions ("send-email", "send-sms"),
either deployed behind HTTP or executed in-process
"""
import logging
from typing import Callable, Protocol
import httpx
from booking_automation.config import settings

logger = logging.getLogger(__name__)

Handler = Callable[[dict], dict]


class RemoteFunctionError(Exception):
    """A remote function is missing, misconfigured or reported failure"""

    def __init__(self, name: str, message: str):
        super().__init__(f"{name}: {message}")
        self.name = name


class FunctionInvoker(Protocol):
    def invoke(self, name: str, body: dict) -> dict: ...


def _check_result(name: str, result) -> dict:
    if not isinstance(result, dict):
        return {"success": True, "result": result}
    if result.get("success") is False:
        raise RemoteFunctionError(name, result.get("error") or "function reported failure")
    return result


class HttpFunctionInvoker:
    """Calls deployed functions at {base_url}/functions/v1/{name}"""

    def __init__(self, base_url: str, api_key: str = "", timeout: float | None = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def invoke(self, name: str, body: dict) -> dict:
        if not self.base_url:
            raise RemoteFunctionError(name, "REMOTE_FUNCTIONS_URL not set")

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            response = httpx.post(
                f"{self.base_url}/functions/v1/{name}",
                json=body,
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise RemoteFunctionError(name, str(e)) from e

        if response.status_code < 200 or response.status_code >= 300:
            raise RemoteFunctionError(name, f"HTTP {response.status_code}: {response.text[:300]}")

        try:
            result = response.json()
        except ValueError:
            result = {"success": True}
        return _check_result(name, result)


class LocalFunctionInvoker:
    """Runs function handlers in-process"""

    def __init__(self, handlers: dict[str, Handler] | None = None):
        if handlers is None:
            from booking_automation.services.email_service import send_email_function
            from booking_automation.services.sms_service import send_sms_function

            handlers = {
                "send-email": send_email_function,
                "send-sms": send_sms_function,
            }
        self.handlers = dict(handlers)

    def invoke(self, name: str, body: dict) -> dict:
        handler = self.handlers.get(name)
        if handler is None:
            raise RemoteFunctionError(name, "function not registered")
        return _check_result(name, handler(body))


# Global instance
_function_invoker = None


def get_function_invoker() -> FunctionInvoker:
    """Get or create the invoker selected by REMOTE_FUNCTIONS_MODE"""
    global _function_invoker
    if _function_invoker is None:
        if settings.remote_functions_mode.lower() == "http":
            _function_invoker = HttpFunctionInvoker(
                settings.remote_functions_url,
                settings.remote_functions_key,
                settings.remote_functions_timeout,
            )
        else:
            _function_invoker = LocalFunctionInvoker()
        logger.info("Remote functions mode: %s", settings.remote_functions_mode)
    return _function_invoker
