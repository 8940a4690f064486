# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""kvsession session: cookie-addressed sessions in a key-value bucket.

Import concrete collection types from the adapter package::

    from kvsession.session.adapters.memory import InMemorySessionCollection
    from kvsession.session.adapters.redis import RedisSessionCollection
"""

from kvsession.session.codecs import SecureCookieCodec, codecs_from_pairs, decode_multi, encode_multi
from kvsession.session.factory import create_session_store
from kvsession.session.ports.outbound import SessionCollection
from kvsession.session.registry import SessionRegistry
from kvsession.session.session import CookieOptions, Session
from kvsession.session.store import BucketSessionStore, generate_session_id

__all__ = [
    "BucketSessionStore",
    "CookieOptions",
    "SecureCookieCodec",
    "Session",
    "SessionCollection",
    "SessionRegistry",
    "codecs_from_pairs",
    "create_session_store",
    "decode_multi",
    "encode_multi",
    "generate_session_id",
]
