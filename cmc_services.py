# -*- coding: utf-8 -*-

from cmc_types import CryptocurrencyInfoResponse
from cmc_types import ListOptions

################################################################################
# Endpoints

# This class holds constants representing various API endpoints, relative to the versioned base URL
class Endpoint:
    CRYPTOCURRENCY_INFO = 'cryptocurrency/info'
    CRYPTOCURRENCY_MAP = 'cryptocurrency/map'
    CRYPTOCURRENCY_LISTINGS = 'cryptocurrency/listings/latest'
    CRYPTOCURRENCY_QUOTES = 'cryptocurrency/quotes/latest'

# Identifier arguments may be a single value or a list of them
def _join(value):
    if value is None or isinstance(value, str):
        return value

    if isinstance(value, (list, tuple)):
        return ','.join(str(v) for v in value)

    return str(value)

################################################################################
# Services

# Shared plumbing for the services hanging off a Client
class Service:
    def __init__(self, client):
        self._client = client

# Cryptocurrency endpoints on the primary API
class CryptocurrencyService(Service):
    def _get(self, endpoint, options, decode = None, **identifiers):
        params = (options or ListOptions()).params()
        params.update({k : _join(v) for k, v in identifiers.items() if v is not None})

        request = self._client.new_request('GET', endpoint, params = params)

        return self._client.do(request, decode = decode).content()

    def info(self, options = None, id = None, slug = None, symbol = None):
        return self._get(Endpoint.CRYPTOCURRENCY_INFO, options, decode = CryptocurrencyInfoResponse.from_json,
                         id = id, slug = slug, symbol = symbol)

    def map(self, options = None, symbol = None):
        return self._get(Endpoint.CRYPTOCURRENCY_MAP, options, symbol = symbol)

    def listings(self, options = None):
        return self._get(Endpoint.CRYPTOCURRENCY_LISTINGS, options)

    def quotes(self, options = None, id = None, slug = None, symbol = None):
        return self._get(Endpoint.CRYPTOCURRENCY_QUOTES, options, id = id, slug = slug, symbol = symbol)

# Search endpoints live on a different host altogether
class SearchService(Service):
    def request(self, endpoint, params = None):
        request = self._client.new_search_request('GET', endpoint, params = params)

        return self._client.do(request).content()
