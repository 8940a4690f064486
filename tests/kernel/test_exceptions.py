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
"""Tests for the kvsession exception hierarchy."""

from kvsession.kernel.exceptions import (
    ConfigurationException,
    EncodingException,
    InfrastructureException,
    InvalidCookieException,
    KVSessionException,
    SecurityException,
    SessionDecodeException,
    StoreConnectionException,
    StoreException,
    TransientStoreException,
)


class TestKVSessionException:
    def test_basic_creation(self):
        exc = KVSessionException("something went wrong")
        assert str(exc) == "something went wrong"
        assert exc.code is None
        assert exc.context == {}
        assert exc.session is None

    def test_with_code_and_context(self):
        exc = KVSessionException("expired", code="EXPIRED", context={"name": "app"})
        assert exc.code == "EXPIRED"
        assert exc.context["name"] == "app"

    def test_context_is_not_shared(self):
        exc = KVSessionException("first")
        exc.context["key"] = "value"
        assert KVSessionException("second").context == {}

    def test_session_can_be_attached(self):
        exc = InvalidCookieException("bad signature")
        exc.session = object()
        assert exc.session is not None


class TestExceptionHierarchy:
    def test_categories_share_the_base(self):
        for category in (ConfigurationException, SecurityException, InfrastructureException, EncodingException):
            assert issubclass(category, KVSessionException)

    def test_invalid_cookie_is_security(self):
        assert issubclass(InvalidCookieException, SecurityException)

    def test_store_errors_are_infrastructure(self):
        assert issubclass(StoreException, InfrastructureException)
        assert issubclass(StoreConnectionException, InfrastructureException)

    def test_transient_is_a_store_error(self):
        assert issubclass(TransientStoreException, StoreException)

    def test_decode_failure_is_not_transient(self):
        assert issubclass(SessionDecodeException, StoreException)
        assert not issubclass(SessionDecodeException, TransientStoreException)

    def test_catch_all_kvsession_exceptions(self):
        """Every error can be handled with a single except clause."""
        exceptions = [
            ConfigurationException("no keys"),
            InvalidCookieException("tampered", code="NAME_MISMATCH"),
            TransientStoreException("timeout"),
            EncodingException("too long"),
        ]
        for exc in exceptions:
            try:
                raise exc
            except KVSessionException as caught:
                assert caught is exc
