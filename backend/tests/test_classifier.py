from agent.classifier import HEURISTIC_RULES, classify, match_rule, strip_creation_prefixes
from agent.types import ActionKind, Category


def test_rule_table_precedence_is_account_then_task_then_conversation():
    domains = [rule.domain for rule in HEURISTIC_RULES]
    assert domains == sorted(domains, key=["account", "task", "conversation"].index)
    assert [rule.name for rule in HEURISTIC_RULES][:5] == [
        "account_update",
        "account_delete",
        "account_create",
        "account_list",
        "password_change",
    ]


def test_task_create_extracts_title():
    intent = classify("add buy groceries")
    assert intent.action == ActionKind.CREATE_TODO
    assert intent.data == {"title": "buy groceries"}
    assert intent.category == Category.TASK_MANAGEMENT


def test_task_create_strips_filler_prefixes():
    assert classify("to call mom").data == {"title": "call mom"}
    assert classify("I need to pay rent").action == ActionKind.CREATE_TODO
    assert strip_creation_prefixes("please schedule need to renew passport") == "renew passport"
    assert strip_creation_prefixes("new task water plants") == "water plants"


def test_task_create_placeholder_title_is_dropped():
    intent = classify("add task")
    assert intent.action == ActionKind.CREATE_TODO
    assert intent.data == {}


def test_account_rules():
    assert classify("create a new account").action == ActionKind.CREATE_ACCOUNT
    assert classify("update role of bob@example.com").action == ActionKind.UPDATE_ACCOUNT
    assert classify("list all users").action == ActionKind.READ_ACCOUNTS
    assert classify("reset the password").action == ActionKind.CHANGE_PASSWORD
    assert classify("change password for bob@example.com").action == ActionKind.CHANGE_PASSWORD


def test_account_delete_carries_email_when_present():
    intent = classify("delete user bob@example.com")
    assert intent.action == ActionKind.DELETE_ACCOUNT
    assert intent.data == {"email": "bob@example.com"}
    assert classify("remove the account").data == {}


def test_account_rules_win_over_task_rules():
    assert match_rule("remove that user").name == "account_delete"
    assert match_rule("show my tasks").name == "task_list"


def test_task_list_complete_and_delete():
    assert classify("show my tasks").action == ActionKind.READ_TODOS
    assert classify("complete all").action == ActionKind.COMPLETE_ALL
    assert classify("delete all").action == ActionKind.DELETE_ALL

    completed = classify("finish laundry")
    assert completed.action == ActionKind.MARK_COMPLETED
    assert completed.data == {"title": "laundry"}

    deleted = classify("remove milk")
    assert deleted.action == ActionKind.DELETE_TODO
    assert deleted.data == {"title": "milk"}

    assert classify("delete task report").data == {"title": "report"}


def test_bare_task_statement_keeps_original_text():
    intent = classify("Meet Sam at 5pm")
    assert intent.action == ActionKind.CREATE_TODO
    assert intent.data == {"title": "Meet Sam at 5pm"}


def test_time_word_heuristic_turns_farewell_into_task():
    intent = classify("see you at 5")
    assert intent.action == ActionKind.CREATE_TODO
    assert intent.data == {"title": "see you at 5"}


def test_conversation_rules():
    greeting = classify("hello there")
    assert greeting.action == ActionKind.CHAT
    assert greeting.data["topic"] == "greeting"
    assert greeting.mood == "excited"
    assert greeting.follow_up == "How are you doing today?"

    assert classify("are you well").data["topic"] == "wellbeing"
    assert classify("thanks").data["topic"] == "gratitude"
    assert classify("take care").data["topic"] == "farewell"


def test_default_plausible_statement_starts_todo_without_title():
    intent = classify("banana bread")
    assert intent.action == ActionKind.CREATE_TODO
    assert intent.data == {}


def test_default_account_mention_or_email_creates_account():
    assert classify("i need a profile").action == ActionKind.CREATE_ACCOUNT
    assert classify("jane@example.com").action == ActionKind.CREATE_ACCOUNT


def test_default_question_is_chat_unless_forced():
    plain = classify("banana bread?")
    assert plain.action == ActionKind.CHAT
    assert plain.follow_up == "That's interesting! Tell me more about that."

    forced = classify("banana bread?", force_create_if_unknown=True)
    assert forced.action == ActionKind.CREATE_TODO


def test_default_open_question_is_information_chat():
    intent = classify("could you describe graphs")
    assert intent.action == ActionKind.CHAT
    assert intent.data["topic"] == "information"
    assert intent.mood == "helpful"

    assert classify("could you describe graphs?").data.get("topic") is None
    assert classify("could you describe graphs?", force_create_if_unknown=True).data["topic"] == "information"


def test_classify_is_total():
    for text in ("", "?", "  ", "x" * 500, None):
        intent = classify(text)
        assert intent.action in set(ActionKind)
