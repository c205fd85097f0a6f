import logging
from collections import namedtuple

import requests
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.requests_client import OAuth2Session

from errors import AuthenticationFailure

logger = logging.getLogger(__name__)

Profile = namedtuple('Profile', ['external_id', 'email', 'display_name'])

GOOGLE_AUTHORIZATION_ENDPOINT = 'https://accounts.google.com/o/oauth2/v2/auth'
GOOGLE_TOKEN_ENDPOINT = 'https://oauth2.googleapis.com/token'
GOOGLE_USERINFO_ENDPOINT = 'https://openidconnect.googleapis.com/v1/userinfo'


def normalize_profile(userinfo):
    email = (userinfo.get('email') or '').strip().lower()
    if not email:
        raise AuthenticationFailure("Email not provided by identity provider")
    return Profile(
        external_id=userinfo.get('sub') or userinfo.get('id'),
        email=email,
        display_name=userinfo.get('name') or email.split('@')[0],
    )


class GoogleIdentityProvider:
    """Authorization-code round trip against Google, yielding a :class:`Profile`."""

    scope = 'openid email profile'

    def __init__(self, client_id, client_secret, redirect_uri=None, timeout=10):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout

    @classmethod
    def from_config(cls, config):
        return cls(
            config.get('GOOGLE_CLIENT_ID'),
            config.get('GOOGLE_CLIENT_SECRET'),
            redirect_uri=config.get('GOOGLE_CALLBACK_URL'),
            timeout=config.get('OUTBOUND_TIMEOUT', 10),
        )

    @property
    def configured(self):
        return bool(self.client_id and self.client_secret)

    def _client(self, redirect_uri, state=None):
        return OAuth2Session(
            client_id=self.client_id,
            client_secret=self.client_secret,
            redirect_uri=self.redirect_uri or redirect_uri,
            scope=self.scope,
            state=state,
        )

    def authorization_url(self, state, redirect_uri=None):
        if not self.configured:
            raise AuthenticationFailure("Google sign-in is not configured")
        url, _ = self._client(redirect_uri).create_authorization_url(
            GOOGLE_AUTHORIZATION_ENDPOINT, state=state)
        return url

    def exchange(self, authorization_response, state, redirect_uri=None):
        if not self.configured:
            raise AuthenticationFailure("Google sign-in is not configured")
        client = self._client(redirect_uri, state=state)
        try:
            client.fetch_token(
                GOOGLE_TOKEN_ENDPOINT,
                authorization_response=authorization_response,
                timeout=self.timeout,
            )
            resp = client.get(GOOGLE_USERINFO_ENDPOINT, timeout=self.timeout)
            resp.raise_for_status()
            userinfo = resp.json()
        except requests.Timeout:
            logger.error("Google sign-in timed out after %ss", self.timeout)
            raise AuthenticationFailure("Identity provider timed out")
        except (AuthlibBaseError, requests.RequestException, ValueError) as e:
            logger.error("Google sign-in failed: %s", e)
            raise AuthenticationFailure("Authentication failed")
        return normalize_profile(userinfo)
