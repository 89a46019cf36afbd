# edgekit

A toolkit for services that run on edge nodes. It is a library only; it has
no command-line entry point. Its parts are independent of each other:

- **`edgekit.persist`**: key/value stores whose entries expire.
  `InMemoryStore` keeps entries in process memory. `RedisStore` keeps
  serialized entries through a Redis client object that you pass in, such as a
  `redis.Redis` instance; the `redis` library is not a dependency of this
  package, so install it yourself if you use this store. Both follow the
  `CacheStore` interface (`get`, `set`, `delete`). A missing key raises
  `CacheMiss`. `serialize` and `deserialize` in `edgekit.persist.codec` turn
  values into bytes and back.
- **`edgekit.httpcache`**: WSGI middleware that caches 2xx responses.
  `cache_by_request_uri` keys entries on the request URI,
  `cache_by_request_path` keys them on the path alone, and `cache` uses the
  `get_cache_strategy_by_request` function of a `CacheConfig`, which returns a
  `Strategy` or `None` for requests that must not be cached. Concurrent
  requests for the same key share one call to the application. `CacheConfig`
  also holds the key prefix, `ignore_query_order`, `without_header` and
  `without_header_ignore`, `key_with_context`, and the hit, miss,
  before-reply and share callbacks. `ResponseCache` is the stored response.
- **`edgekit.env`**: the edge runtime's environment: `run_mode()`,
  `host_path_lib()`, the namespaces, and the hosts, ports and addresses of the
  broker, core, function and gateway services.
- **`edgekit.platforminfo`**: `current_platform()` returns a `PlatformInfo`
  with the OS, architecture and variant of the running machine;
  `platform_string()` formats it as `os-arch` or `os-arch-variant`.
- **`edgekit.dmcontext`**: device-management helpers.
  - `models`: dataclass records for devices, properties, access templates and
    access configurations, with `from_dict`, `to_dict` and `parse_duration`.
  - `format`: `parse_value` converts raw values to declared property types
    (`int`, `int16`, …, `bool`, `string`, `time`, `date`, `array`, `enum`,
    `object`), plus `parse_property_value` and the `parse_value_to_*`
    helpers.
  - `expression`: `parse_expression`, `exec_expression`,
    `exec_expression_with_precision` and `solve_expression` for mapping
    expressions.
  - `templates`: `get_mapping_name`, `get_config_id_by_model_name` and
    `get_prop_value_by_model_name` look things up in an `AccessTemplate`.
  - `registry`: `DeviceRegistry.load_driver_config(path, driver_name)` reads
    `models.yml`, `access_template.yml` and `sub_devices.yml` from a
    directory; the registry then answers `get_device`, `get_all_devices`,
    `get_device_model`, `get_access_template`, `get_driver_name_by_device`,
    `get_driver_config` and `parse_property_values`.
  - `blink`: `MsgBlink` builds property, event, property-get and lifecycle
    messages as `ContentBlink` records; `init_msg` returns a builder.
- **`edgekit.httpclient.options`**: settings records: `ClientConfig`,
  `ClientOptions` (`new_client_options()` gives the defaults), `ServerConfig`
  and `SyncResult`. `ClientConfig.to_client_options()` loads the named
  certificates into an `ssl.SSLContext`.

## What it does not do

The package does not send HTTP requests and does not run an HTTP server:
`edgekit.httpclient` holds only the settings such a client or server would be
built from. It has no error types of its own beyond the exceptions each module
raises, and no command to run.

## Examples

Caching a WSGI application in memory for three seconds:

```python
from edgekit.httpcache.middleware import cache_by_request_uri
from edgekit.persist.memory import InMemoryStore

def app(environ, start_response):
    start_response("200 OK", [("Content-Type", "text/plain")])
    return [b"hello"]

cached_app = cache_by_request_uri(app, InMemoryStore(60), 3)
```

Normalising a request URI so that query order does not matter:

```python
from edgekit.httpcache.strategy import get_request_uri_ignore_query_order

assert get_request_uri_ignore_query_order("/test?c=3&b=2&a=1") == "/test?a=1&b=2&c=3"
```

Converting values to declared property types:

```python
from edgekit.dmcontext.format import parse_value

parse_value("time", "17.04.05", "hh:mm:ss")   # "17:04:05"
parse_value("int16", 1, None)                 # 1
```

Mapping expressions:

```python
from edgekit.dmcontext.expression import parse_expression, exec_expression, solve_expression

parse_expression("x4/(x1+x2+x1*x3*10)")                    # ["x4", "x1", "x2", "x1", "x3"]
exec_expression("x1+x2", {"x1": 1, "x2": 2}, "calculate")  # 3.0
solve_expression("x1*2-11", 9)                             # 10.0
```

Runtime environment:

```python
from edgekit import env

env.run_mode()          # "kube" unless BAETYL_RUN_MODE is "native"
env.broker_address()    # "ssl://baetyl-broker.baetyl-edge-system:50010" in kube mode
```

## Installing for tests

```
pip install -e ".[test]"
pytest
```