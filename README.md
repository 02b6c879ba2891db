# anonpeer

A small toolkit for anonymous peer-to-peer messaging. Every message is
encrypted for its receiver, signed by its sender, stamped with a
proof of work against spam, and may be wrapped in several layers of
routing encryption so that relaying nodes learn neither who sent it nor
who it is for.

On top of the library sit two services:

* **HES** (hidden e-mail service): an HTTP store for encrypted
  messages, indexed by the hash of the receiver's public key.
* **HLS** (hidden lake service): a network node that forwards HTTP
  requests arriving through the anonymous network to local services.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Building blocks

| Module                  | What it provides                                          |
|-------------------------|-----------------------------------------------------------|
| `anonpeer.encoding`     | URL-safe base64 and big-endian `uint64` conversions       |
| `anonpeer.settings`     | `Key`, `Settings` and `fast_settings()`                   |
| `anonpeer.fileutils`    | file, prompt and tab-indented JSON helpers                |
| `anonpeer.prng`         | `random_bytes()`, `random_string()`, `random_uint64()`    |
| `anonpeer.hashing`      | `Hasher`, `HMACHasher`, `raise_entropy()`                 |
| `anonpeer.symmetric`    | `Cipher` (AES-CBC keyed by the SHA-256 of a secret)       |
| `anonpeer.asymmetric`   | `PrivKey`, `PubKey`, `load_priv_key()`, `load_pub_key()`  |
| `anonpeer.puzzle`       | `Puzzle`, a hash-based proof of work                      |
| `anonpeer.message`      | `Message`, `Head`, `Body`, `Package`, `new_message()`     |
| `anonpeer.route`        | `Route`: receiver, pseudo sender and relay nodes          |
| `anonpeer.client`       | `Client`: encrypts and decrypts messages                  |
| `anonpeer.storage`      | `Storage`: password-protected file of secrets             |
| `anonpeer.f2f`          | `F2F`: friend-to-friend filtering                         |
| `anonpeer.node`         | `Node`: TCP node that relays, answers and requests        |
| `anonpeer.hes.config`   | `Config`, `load_config()` for the e-mail service          |
| `anonpeer.hes.database` | `KeyValueDB`, the mailbox store                           |
| `anonpeer.hes.server`   | `handle_request()`, `create_server()`, `main()`           |
| `anonpeer.hls.config`   | `Config`, `load_config()` for the lake service            |
| `anonpeer.hls.request`  | `Request`, `load_request()`                               |
| `anonpeer.hls.service`  | `make_route_handler()`, `get_priv_key()`, `main()`        |

Failures are raised as exceptions: `CipherError` for bad ciphertexts,
`KeyError_` for keys that cannot be loaded or used, `StorageError`,
`NodeError` and `DatabaseError` in their modules, and `ValueError` for
messages that fail to parse or decrypt.

### Keys and symmetric encryption

```python
from anonpeer.asymmetric import PrivKey, load_pub_key
from anonpeer.symmetric import Cipher

priv = PrivKey.generate(1024)
pub = priv.pub_key()

assert priv.decrypt(pub.encrypt(b"hello, world!")) == b"hello, world!"
assert pub.verify(b"hello, world!", priv.sign(b"hello, world!"))

# Keys print as "Pub(anonpeer\rsa){<hex>}" and load back from that text.
assert load_pub_key(str(pub)) == pub

cipher = Cipher(b"shared secret material")
assert cipher.decrypt(cipher.encrypt(b"data")) == b"data"
```

Public and private keys are PKCS#1 DER underneath; `bytes(key)` gives
that form and `load_pub_key` / `load_priv_key` accept it as well.

### Proof of work

```python
from anonpeer.hashing import Hasher
from anonpeer.puzzle import Puzzle

digest = bytes(Hasher(b"hello, world!"))
puzzle = Puzzle(10)
nonce = puzzle.proof(digest)
assert puzzle.verify(digest, nonce)
```

### Sending a request through the network

A node listens for connections, relays every message it has not seen
before, and hands messages addressed to it to the handler registered for
the message's title. The handler's return value travels back to the
requester.

```python
import threading

from anonpeer.asymmetric import PrivKey
from anonpeer.client import Client
from anonpeer.message import new_message
from anonpeer.node import Node
from anonpeer.route import Route
from anonpeer.settings import fast_settings


def echo(client, msg):
    return msg.body.data


def make_node():
    return Node(Client(PrivKey.generate(1024), fast_settings()))


relay, alice, bob = make_node(), make_node(), make_node()
bob.handle(b"/echo", echo)

threading.Thread(target=relay.listen, args=("localhost:7070",), daemon=True).start()
alice.connect("localhost:7070")
bob.connect("localhost:7070")

reply = alice.request(Route(bob.client.pub_key()), new_message(b"/echo", b"hi"))
```

`Node.listen` blocks until `Node.close` is called. `Node.request`
raises `NodeError` when no answer arrives within the configured number
of retries. To hide the sender, give the route a pseudo sender and a
list of relay keys: `Route(receiver, psender=PrivKey.generate(1024),
nodes=[...])`; the message is wrapped once per relay.

Switching a node into friend-to-friend mode with `node.f2f.switch()`
makes it ignore senders that were not added with
`node.f2f.append(pub)`.

### Settings

`Settings()` starts from the production defaults (20-bit proof of work,
8 MiB packages, 20 second waits, 3 retries, 32-byte session keys, ...).
Values are read and changed with `get` and `set`:

```python
from anonpeer.settings import Key, Settings

settings = Settings()
settings.set(Key.TIME_WAIT, 1)
```

`fast_settings()` returns a lighter profile (10-bit proof of work,
1 MiB packages, one retry, 16-byte session keys) meant for tests.

### Keeping secrets on disk

```python
from anonpeer.settings import fast_settings
from anonpeer.storage import Storage

password = "password"
storage = Storage(fast_settings(), "secrets.stg", password)
storage.write("private_key", password, b"secret")
assert storage.read("private_key", password) == b"secret"
```

Each entry is encrypted under a key stretched from its identifier and
password; reading an identifier that was never written raises
`StorageError`.

## Services

### Hidden e-mail service

```
anonpeer-hes
```

On first start it writes `hes.cfg` (JSON, listening on
`localhost:9572` by default) and keeps its data in the `hes.db`
directory. The store is cleared every day at midnight, Asia/Jakarta
time. It answers `POST` requests with JSON bodies, byte fields given as
base64:

* `/push`: `{"receiver": <32-byte hash>, "package": <message>}`
* `/size`: `{"receiver": <32-byte hash>}`, the number of stored messages
* `/load`: `{"receiver": <32-byte hash>, "index": n}`

Every reply is `{"result": <base64>, "return": code}`; the codes are
listed in `anonpeer.hes.server.ErrorCode`. Any other path answers with
code `0` and the text `hidden email service`. A message hash that was
stored once is refused a second time.

### Hidden lake service

```
anonpeer-hls
anonpeer-hls --init-only
```

On first start it writes `hls.cfg` with the listening address
(`localhost:9571`), the nodes to connect to and the map of hidden
service names to local HTTP addresses. It asks for a storage password
and an object password, then loads or creates its 4096-bit private key
in `hls.stg` and prints its public key. With `--init-only` it stops
after that step. If the configured address is empty it only connects
out and does not listen.

Requests built with `anonpeer.hls.request.Request` and sent under the
title `hidden-lake-service` are forwarded to the matching local service,
and the HTTP response body is returned to the requester.

## What is not included

There is no command-line client for either service: pushing to or
loading from the e-mail service, and sending requests into the hidden
lake, are done from Python with `Client`, `Node` and an HTTP library of
your choice.