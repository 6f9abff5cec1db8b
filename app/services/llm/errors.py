class LLMError(Exception):
    """Base class for provider gateway failures."""


class NoProviderConfigured(LLMError):
    def __init__(
        self,
        message: str = "No LLM API key provided. Set ANTHROPIC_API_KEY, OPENAI_API_KEY, or OPENROUTER_API_KEY",
    ):
        super().__init__(message)


class TransportFailure(LLMError):
    """Non-2xx response (or no response at all) from a provider.

    `status_code` is None when the request never got an HTTP response.
    """

    def __init__(self, provider: str, status_code: int | None, body: str):
        self.provider = provider
        self.status_code = status_code
        self.body = body
        super().__init__(f"{provider} request failed ({status_code}): {body}")


class EmptyCompletion(LLMError):
    """Provider answered 2xx but without any completion text.

    Also raised when the 2xx body is not JSON at all.
    """

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Empty response from {provider}")
