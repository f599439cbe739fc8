from agent.intent_keywords import (
    has_account_token,
    has_task_cue,
    is_explicit_account_delete,
    is_explicit_task_create,
    is_forced_account_delete,
    is_natural_language_task,
    is_open_question,
    is_password_change_intent,
    is_task_create_intent,
    is_task_delete_intent,
)


def test_password_change_variants():
    assert is_password_change_intent("Change password please")
    assert is_password_change_intent("reset the password for bob")
    assert is_password_change_intent("my password reset")
    assert is_password_change_intent("create a new password")
    assert not is_password_change_intent("show my passwords list")


def test_account_token_and_task_cue():
    assert has_account_token("update my profile")
    assert has_account_token("what is my email")
    assert not has_account_token("buy groceries")
    assert has_task_cue("meet sam")
    assert has_task_cue("dentist 10am")
    assert has_task_cue("gym 7 o'clock")
    assert not has_task_cue("buy groceries")


def test_task_create_and_delete_cues():
    assert is_task_create_intent("add buy milk")
    assert is_task_create_intent("I need to pay rent")
    assert is_task_create_intent("to water plants")
    assert not is_task_create_intent("buy groceries")
    assert is_task_delete_intent("drop the laundry")
    assert not is_task_delete_intent("buy groceries")


def test_natural_language_task_excludes_account_tokens():
    assert is_natural_language_task("call mom tomorrow")
    assert not is_natural_language_task("call the user tomorrow")
    assert not is_natural_language_task("my password expires at noon")


def test_explicit_breakout_phrases():
    assert is_explicit_account_delete("please delete the account")
    assert is_explicit_account_delete("remove user bob")
    assert not is_explicit_account_delete("delete the report")
    assert is_explicit_task_create("create task for the report")
    assert is_explicit_task_create("new todo")
    assert is_explicit_task_create("add buy milk")
    assert is_explicit_task_create("please add eggs")
    assert not is_explicit_task_create("add a user account")


def test_forced_account_delete_and_open_question():
    assert is_forced_account_delete("delete account")
    assert is_forced_account_delete("please remove account bob@example.com")
    assert not is_forced_account_delete("delete the account")
    assert is_open_question("could you describe graphs")
    assert not is_open_question("buy groceries")
