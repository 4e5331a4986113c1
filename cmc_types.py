# -*- coding: utf-8 -*-

from typing import NamedTuple

################################################################################
# Request Options

# ListOptions. Every field is optional; anything left as None is never sent.
class ListOptions(NamedTuple):
    # Offset the start (1-based index) of the paginated list of items to return
    start : int = None

    # Number of results to return. The API accepts 1 to 5000, we leave checking that to the server.
    limit : int = None

    # Up to 32 cryptocurrency or fiat symbols to calculate quotes in.
    # Either a comma separated string or a list of symbols.
    convert : object = None

    # What field to sort by (server default: 'market_cap')
    sort : str = None
    sort_dir : str = None

    # Server default: 'all'
    cryptocurrency_type : str = None

    api_key : str = None

    def params(self):
        out = {}

        for name, value in self._asdict().items():
            if value is None:
                continue

            if name == 'convert' and not isinstance(value, str):
                value = ','.join(value)

            out[name] = value

        return out

################################################################################
# Response Shapes

# Every Pro API response carries one of these next to its data.
class Status(NamedTuple):
    timestamp : str = None
    error_code : int = 0
    error_message : str = None
    elapsed : int = 0
    credit_count : int = 0

    @classmethod
    def from_json(cls, obj):
        return cls(
            timestamp = obj.get('timestamp'),
            error_code = obj.get('error_code', 0),
            error_message = obj.get('error_message'),
            elapsed = obj.get('elapsed', 0),
            credit_count = obj.get('credit_count', 0)
        )

# Static metadata for one cryptocurrency (from cryptocurrency/info)
class CryptocurrencyInfo(NamedTuple):
    id : int
    name : str
    symbol : str

    slug : str = None
    category : str = None
    logo : str = None
    description : str = None
    date_added : str = None
    tags : list = None
    platform : dict = None
    urls : dict = None

    # id, name and symbol are mandatory; a KeyError here means the payload isn't what we expected.
    @classmethod
    def from_json(cls, obj):
        return cls(
            id = obj['id'],
            name = obj['name'],
            symbol = obj['symbol'],
            slug = obj.get('slug'),
            category = obj.get('category'),
            logo = obj.get('logo'),
            description = obj.get('description'),
            date_added = obj.get('date_added'),
            tags = obj.get('tags') or [],
            platform = obj.get('platform'),
            urls = obj.get('urls') or {}
        )

# data is keyed by whatever the request asked with (id, slug or symbol)
class CryptocurrencyInfoResponse(NamedTuple):
    status : Status
    data : dict

    @classmethod
    def from_json(cls, obj):
        return cls(
            status = Status.from_json(obj.get('status') or {}),
            data = {k : CryptocurrencyInfo.from_json(v) for k, v in obj['data'].items()}
        )
