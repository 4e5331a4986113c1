# -*- coding: utf-8 -*-

from datetime import datetime
from datetime import timezone
from urllib.parse import urljoin
from urllib.parse import urlsplit

# For sending requests
from requests.auth import AuthBase
import requests

from cmc_services import CryptocurrencyService
from cmc_services import SearchService
from cmc_types import ListOptions

import json
import sys

################################################################################
# Constants

DEFAULT_BASE_URL = 'https://pro-api.coinmarketcap.com/'
DEFAULT_SEARCH_URL = 'https://pro.coinmarketcap.com/'

SANDBOX_BASE_URL = 'https://sandbox-api.coinmarketcap.com/'
SANDBOX_SEARCH_URL = 'https://sandbox.coinmarketcap.com/'

DEFAULT_API_VERSION = 'v1/'
SEARCH_API_PATH = 'api/'

RESPONSE_SUCCESSFUL = 200
RESPONSE_BAD_REQUEST = 400
RESPONSE_UNAUTHORIZED = 401
RESPONSE_FORBIDDEN = 403
RESPONSE_TOO_MANY_REQUESTS = 429
RESPONSE_INTERNAL_SERVER = 500

# Advisory bounds for ListOptions.limit. The server rejects anything outside of these.
MIN_LIMIT_OPTION = 1
MAX_LIMIT_OPTION = 5000

# Rate limit headers, if the server decides to send them
HEADER_RATE_LIMIT = 'X-RateLimit-Limit'
HEADER_RATE_REMAINING = 'X-RateLimit-Remaining'
HEADER_RATE_RESET = 'X-RateLimit-Reset'

DEFAULT_TIMEOUT = 30

################################################################################
# Errors

# Base class for everything this module raises, so callers can catch the lot at once.
class ClientError(Exception):
    pass

# The base URL (primary or search) is unusable for resolving endpoint paths.
class ConfigurationError(ClientError):
    pass

class URLParseError(ClientError):
    pass

class SerializationError(ClientError):
    pass

# We never reached the server (DNS, refused connection, timeout...)
class TransportError(ClientError):
    pass

# We reached the server, but reading the response body failed partway.
# Also an OSError, so `except IOError` catches it.
class BodyReadError(ClientError, OSError):
    pass

# APIError class. The server answered with anything but 200.
# The message is the raw response body. We don't try to make sense of it, even when it's JSON.
class APIError(ClientError):
    def __init__(self, status, body):
        super().__init__(body)

        self.status = status
        self.body = body

    def __str__(self):
        return self.body

# The server answered 200, but the body isn't what we asked for.
class DeserializationError(ClientError):
    pass

# Only raised when auto_check_rate_limit is turned on.
class RateLimitExceededError(ClientError):
    def __init__(self, rate):
        super().__init__(f'Rate limit exhausted ({rate.remaining}/{rate.limit}), resets at {rate.reset.isoformat()}')

        self.rate = rate

################################################################################
# Rate Tracking

# Rate class. Quota for one API surface as of the most recent response that told us about it.
# Nothing here is locked. Two threads updating the same record at once will race.
class Rate:
    def __init__(self, limit = 0, remaining = 0, reset = None):
        self.limit = 0
        self.remaining = 0
        self.reset = None

        self.set(limit, remaining, reset)

    def set(self, limit, remaining, reset):
        if limit < 0 or remaining < 0:
            raise ValueError(f'Rate values must be non-negative (limit = {limit}, remaining = {remaining})')

        if remaining > limit:
            raise ValueError(f'Remaining requests ({remaining}) exceed the limit ({limit})')

        # Naive reset times are taken to be UTC
        if reset is not None and reset.tzinfo is None:
            reset = reset.replace(tzinfo = timezone.utc)

        self.limit = limit
        self.remaining = remaining
        self.reset = reset

    # A record nobody has filled in yet (limit = 0) is never exhausted.
    def exhausted(self, now = None):
        if self.limit == 0 or self.remaining > 0 or self.reset is None:
            return False

        return self.reset > (now or datetime.now(tz = timezone.utc))

    def __eq__(self, other):
        if not isinstance(other, Rate):
            return NotImplemented

        return (self.limit, self.remaining, self.reset) == (other.limit, other.remaining, other.reset)

    def __repr__(self):
        return f'Rate(limit = {self.limit}, remaining = {self.remaining}, reset = {self.reset!r})'

# RateLimit class. One Rate for the core API and one for the search API.
class RateLimit:
    def __init__(self):
        self.core = Rate()
        self.search = Rate()

    def set_core_rate(self, limit, remaining, reset):
        self.core.set(limit, remaining, reset)

    def set_search_rate(self, limit, remaining, reset):
        self.search.set(limit, remaining, reset)

# Pull a Rate out of response headers. Returns None if any of the three is missing or garbage.
def parse_rate(headers):
    try:
        limit = int(headers[HEADER_RATE_LIMIT])
        remaining = int(headers[HEADER_RATE_REMAINING])
        reset = datetime.fromtimestamp(int(headers[HEADER_RATE_RESET]), tz = timezone.utc)
    except (KeyError, ValueError, OverflowError, OSError):
        return None

    try:
        return Rate(limit, remaining, reset)
    except ValueError:
        return None

################################################################################
# URL Resolution

def resolve_url(base_url, path):
    try:
        base_path = urlsplit(base_url).path
    except ValueError as error:
        raise ConfigurationError(f'Base URL {base_url} could not be parsed') from error

    if not base_path.endswith('/'):
        raise ConfigurationError(f'Base URL must have a trailing slash, but {base_url} does not.')

    if any(ord(c) < 0x20 or ord(c) == 0x7f for c in path):
        raise URLParseError(f'Invalid control character in URL {path!r}')

    try:
        url = urljoin(base_url, path)

        # .port is the only thing that actually validates the authority
        urlsplit(url).port
    except ValueError as error:
        raise URLParseError(f'Could not parse URL {path!r}: {error}') from error

    return url

################################################################################
# Authentication

# Auth Class. This handles authentication by API key.
# Every call to the Pro API needs the key, so the client hands this to every request it builds.
class Auth(AuthBase):
    HEADER_KEY = 'X-CMC_PRO_API_KEY'

    def __init__(self, key):
        self._key = key

    def __call__(self, request):
        request.headers[Auth.HEADER_KEY] = self._key

        return request

# Credentials live in a JSON file, {"key": "..."}
def load_auth(path):
    with open(path, 'rb') as file:
        creds = json.load(file)

        return Auth(creds['key'])

################################################################################
# Responses

# Response class. This encapsulates one round trip through Client.do()
# It isn't kept around after the call that made it.
class Response:
    def __init__(self, underlying, content, rate):
        self._underlying = underlying
        self._content = content
        self._rate = rate

    def headers(self):
        return self._underlying.headers

    def status(self):
        return self._underlying.status_code

    # The decoded body (after the decode callable, if one was given)
    def content(self):
        return self._content

    # Rate extracted from this response, or None if the server didn't send one.
    def rate(self):
        return self._rate

################################################################################
# Client

# Client Class. This handles building, sending and decoding requests.
# `session` is the transport. Anything with a requests.Session compatible send() will do.
class Client:
    def __init__(self, auth = None, session = None, version = DEFAULT_API_VERSION, sandbox = False,
                 base_url = None, search_url = None, auto_check_rate_limit = False,
                 timeout = DEFAULT_TIMEOUT, verbose = False):
        self._base_url = base_url or (SANDBOX_BASE_URL if sandbox else DEFAULT_BASE_URL) + version
        self._search_url = search_url or (SANDBOX_SEARCH_URL if sandbox else DEFAULT_SEARCH_URL) + SEARCH_API_PATH

        self._auth = auth
        self._session = session or requests.Session()
        self._timeout = timeout
        self._verbose = verbose

        # When this is off (the default), do() never looks at the rate limits before sending.
        self.auto_check_rate_limit = auto_check_rate_limit
        self.rate_limit = RateLimit()

        # Services used for talking to different parts of the API.
        self.cryptocurrency = CryptocurrencyService(self)
        self.search = SearchService(self)

        if self._verbose:
            print(f'API URL: {self._base_url}', file = sys.stderr)
            print(f'Search URL: {self._search_url}', file = sys.stderr)

    @property
    def base_url(self):
        return self._base_url

    @property
    def search_url(self):
        return self._search_url

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def close(self):
        self._session.close()

    def new_request(self, method, path, body = None, params = None):
        return self._build_request(self._base_url, method, path, body, params)

    def new_search_request(self, method, path, body = None, params = None):
        return self._build_request(self._search_url, method, path, body, params)

    # No I/O happens here; the result can be inspected without ever being sent.
    def _build_request(self, base_url, method, path, body, params):
        url = resolve_url(base_url, path)
        headers = {'Accept' : 'application/json'}

        data = None

        if body is not None:
            if isinstance(body, ListOptions):
                body = body.params()

            try:
                data = json.dumps(body).encode('utf-8')
            except (TypeError, ValueError) as error:
                raise SerializationError(f'Could not encode request body: {error}') from error

            headers['Content-Type'] = 'application/json'

        query = {k : v for k, v in (params or {}).items() if v is not None}

        request = requests.Request(
            method = method.upper(),
            url = url,
            headers = headers,
            data = data,
            params = query,
            auth = self._auth
        ).prepare()

        if self._verbose:
            print(f'{request.method}: {request.url}', file = sys.stderr)

        return request

    # The search host gets its own rate record; everything else counts against core.
    def _rate_record(self, url):
        if url.startswith(self._search_url):
            return self.rate_limit.search

        return self.rate_limit.core

    # Send a prepared request and decode the body.
    # `decode` receives the parsed JSON of a 200 response; its return value becomes Response.content()
    def do(self, request, decode = None):
        record = self._rate_record(request.url)

        if self.auto_check_rate_limit and record.exhausted():
            raise RateLimitExceededError(record)

        try:
            underlying = self._session.send(request, stream = True, timeout = self._timeout)
        except requests.RequestException as error:
            raise TransportError(f'{request.method} {request.url} failed: {error}') from error

        try:
            body = underlying.content or b''
        except (requests.RequestException, OSError) as error:
            raise BodyReadError(f'Failed to read response body from {request.url}: {error}') from error
        finally:
            underlying.close()

        rate = parse_rate(underlying.headers)

        # No rate information means we leave whatever we had alone.
        if rate is not None:
            record.set(rate.limit, rate.remaining, rate.reset)

        if self._verbose:
            print(f'{request.method}: Status: {underlying.status_code}', file = sys.stderr)

        if underlying.status_code != RESPONSE_SUCCESSFUL:
            raise APIError(underlying.status_code, body.decode('utf-8', errors = 'replace'))

        try:
            content = json.loads(body)

            if decode is not None:
                content = decode(content)
        except (ValueError, KeyError, TypeError, AttributeError) as error:
            raise DeserializationError(f'Could not decode response from {request.url}: {error}') from error

        return Response(underlying, content, rate)

# The sandbox client. Handy for testing against fake data without burning credits.
def default_client(auth = None, verbose = False):
    return Client(auth = auth, sandbox = True, verbose = verbose)
