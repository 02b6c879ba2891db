"""End-to-end encryption of messages between key holders."""

from __future__ import annotations

from anonpeer.asymmetric import PrivKey, PubKey, load_pub_key
from anonpeer.encoding import UINT64_SIZE, bytes_to_uint64, uint64_to_bytes
from anonpeer.hashing import HASH_SIZE, Hasher
from anonpeer.message import Body, Head, Message, new_message
from anonpeer.prng import random_bytes, random_uint64
from anonpeer.puzzle import Puzzle
from anonpeer.route import Route
from anonpeer.settings import Key, Settings

_NOISE_MODULUS = Key.SIZE_PACK // 4


class Client:
    """A user identified by a private key."""

    def __init__(self, priv_key: PrivKey, settings: Settings) -> None:
        if priv_key is None:
            raise ValueError("client needs a private key")
        self.priv_key = priv_key
        self.settings = settings

    def pub_key(self) -> PubKey:
        return self.priv_key.pub_key()

    def encrypt(self, route: Route, msg: Message) -> tuple[Message, bytes]:
        """Encrypt msg for the route's receiver and wrap it for each relay.

        Return the outermost message and the session key of the innermost one.
        """
        if route.nodes and route.psender is None:
            raise ValueError("psender is nil and routes not nil")
        routed, session = self._once_encrypt(route.receiver, msg)
        if route.nodes:
            relay = Client(route.psender, self.settings)
            mask = uint64_to_bytes(self.settings.get(Key.MASK_ROUT))
            for pub in route.nodes:
                routed, _ = relay._once_encrypt(
                    pub, new_message(mask, bytes(routed.to_package()))
                )
        return routed, session

    def _once_encrypt(self, receiver: PubKey, msg: Message) -> tuple[Message, bytes]:
        skey_size = self.settings.get(Key.SIZE_SKEY)
        salt = random_bytes(skey_size)
        session = random_bytes(skey_size)

        payload = bytes(msg.body.data)
        data = (
            uint64_to_bytes(len(payload))
            + payload
            + uint64_to_bytes(random_uint64() % _NOISE_MODULUS)
        )
        own = bytes(self.pub_key())
        digest = bytes(Hasher(salt + own + bytes(receiver) + data))

        cipher = _session_cipher(session)
        encrypted = Message(
            head=Head(
                sender=cipher.encrypt(own),
                session=receiver.encrypt(session),
                salt=cipher.encrypt(salt),
            ),
            body=Body(
                data=cipher.encrypt(data),
                hash=digest,
                sign=cipher.encrypt(self.priv_key.sign(digest)),
                proof=Puzzle(self.settings.get(Key.SIZE_WORK)).proof(digest),
            ),
        )
        return encrypted, session

    def decrypt(self, msg: Message) -> tuple[Message, bytes]:
        """Decrypt a message addressed to this client.

        Return the decrypted message and its title; raise ValueError when the
        message is not for this client or fails any check.
        """
        if msg is None:
            raise ValueError("no message")
        body = msg.body
        if len(body.hash) != HASH_SIZE:
            raise ValueError("invalid hash size")

        puzzle = Puzzle(self.settings.get(Key.SIZE_WORK))
        if not puzzle.verify(body.hash, body.proof):
            raise ValueError("invalid proof of work")

        session = self.priv_key.decrypt(msg.head.session)
        cipher = _session_cipher(session)

        sender_bytes = cipher.decrypt(msg.head.sender)
        sender = load_pub_key(sender_bytes)
        own = self.pub_key()
        if sender.size() != own.size():
            raise ValueError("sender key size differs from own key size")

        salt = cipher.decrypt(msg.head.salt)
        data = cipher.decrypt(body.data)

        check = bytes(Hasher(salt + sender_bytes + bytes(own) + data))
        if check != bytes(body.hash):
            raise ValueError("message hash mismatch")

        if len(data) < UINT64_SIZE:
            raise ValueError("message data is too short")
        length = bytes_to_uint64(data)
        rest = data[UINT64_SIZE:]
        if length > len(rest):
            raise ValueError("message length exceeds data")

        sign = cipher.decrypt(body.sign)
        if not sender.verify(body.hash, sign):
            raise ValueError("invalid signature")

        decrypted = Message(
            head=Head(sender=sender_bytes, session=session, salt=salt),
            body=Body(data=rest[:length], hash=bytes(body.hash), sign=sign, proof=body.proof),
        )
        title = decrypted.export_title()
        return decrypted, title


def _session_cipher(session: bytes):
    from anonpeer.symmetric import Cipher

    return Cipher(session)