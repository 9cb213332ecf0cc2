import httpx

from vax_credentials.provider import CredentialProvider


class VAXAuth(httpx.Auth):
    """Adds the provider's bearer token to every request.

    A 401 response invalidates the cached token so the next request
    refreshes it. The rejected request itself is not retried.

    Usage:
        client = httpx.Client(auth=VAXAuth(provider))
    """

    def __init__(self, provider: CredentialProvider):
        self.provider = provider

    def sync_auth_flow(self, request):
        request.headers["Authorization"] = self.provider.get_authorization_token()
        response = yield request
        if response.status_code == 401:
            self.provider.invalidate()

    async def async_auth_flow(self, request):
        request.headers["Authorization"] = await self.provider.aget_authorization_token()
        response = yield request
        if response.status_code == 401:
            self.provider.invalidate()
