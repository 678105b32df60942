"""SC-3 ClientStore 对接真实 app"""

from tasktodo.client import ClientStore
from tasktodo.core.models import SessionMode


class TestClientStoreAgainstApp:
    async def test_full_session(self, client_store: ClientStore):
        assert await client_store.signup("a@x.com", "password123") is True
        state = client_store.state
        assert state.session_mode == SessionMode.AUTHENTICATED
        assert state.current_user.email == "a@x.com"
        assert state.auth_token

        first = await client_store.create_task("first")
        second = await client_store.create_task("second")
        assert (first.manual_order, second.manual_order) == (1, 2)
        assert [t.title for t in client_store.state.task_list] == ["first", "second"]

        assert await client_store.move_task(second.id, first.id) is True
        assert [t.title for t in client_store.state.task_list] == ["second", "first"]
        assert [t.manual_order for t in client_store.state.task_list] == [1, 2]

        toggled = await client_store.toggle_completed(first.id)
        assert toggled.is_completed is True

        await client_store.set_filters(is_completed=True)
        assert [t.title for t in client_store.state.task_list] == ["first"]
        assert client_store.state.task_count == 1

        assert await client_store.delete_task(first.id) is True
        assert client_store.state.task_list == ()

        client_store.logout()
        assert client_store.state.session_mode == SessionMode.ANONYMOUS
        assert client_store.state.task_list == ()

    async def test_restore_session_with_token(self, client_store: ClientStore):
        await client_store.signup("a@x.com", "password123")
        token = client_store.state.auth_token
        client_store.logout()

        assert await client_store.restore_session(token) is True
        assert client_store.state.current_user.email == "a@x.com"

    async def test_restore_session_with_bad_token(self, client_store: ClientStore):
        assert await client_store.restore_session("garbage") is False
        assert client_store.state.session_mode == SessionMode.ANONYMOUS
        assert client_store.state.auth_token is None

    async def test_duplicate_signup_surfaces_server_message(self, client_store: ClientStore):
        await client_store.signup("a@x.com", "password123")
        client_store.logout()

        assert await client_store.signup("a@x.com", "password123") is False
        assert client_store.state.last_error.kind == "validation"
        assert client_store.state.last_error.message == "Email already in use"
