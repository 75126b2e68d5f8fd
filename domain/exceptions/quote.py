class QuoteError(Exception):
    pass


class InvalidRequestError(QuoteError):
    pass


class NoProvidersEnabledError(QuoteError):
    def __init__(self, message: str = 'No quote providers are enabled'):
        super().__init__(message)


class AllProvidersFailedError(QuoteError):
    """Raised when every enabled provider failed within one round"""

    def __init__(self, failures: dict[str, str]):
        self.failures = failures
        details = '; '.join(f'{name}: {error}' for name, error in failures.items())
        super().__init__(f'All providers failed to provide a quote. Details: {details}')
