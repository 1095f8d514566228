"""Bearer token storage shared with the login flow."""

AUTH_TOKEN_KEY = 'auth_token'


class TokenStorage:
    """Reads and writes the access token kept in a local-storage mapping."""

    def __init__(self, storage, key=AUTH_TOKEN_KEY):
        self._storage = storage
        self._key = key

    def get_token(self):
        token = self._storage.get(self._key)
        return token or None

    def set_token(self, token):
        self._storage[self._key] = token

    def clear(self):
        self._storage.pop(self._key, None)
