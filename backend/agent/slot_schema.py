from __future__ import annotations

from dataclasses import dataclass

from agent.types import (
    FIELD_EMAIL,
    FIELD_NAME,
    FIELD_NEW_NAME,
    FIELD_NEW_PASSWORD,
    FIELD_NEW_ROLE,
    FIELD_PASSWORD,
    FIELD_TITLE,
    FIELD_UPDATE_FIELD,
    ActionKind,
)


@dataclass(frozen=True)
class PromptTable:
    name: str
    prompts: tuple[tuple[str, str], ...]
    fallback: str

    def prompt_for(self, missing: list[str]) -> str:
        for slot_name, prompt in self.prompts:
            if slot_name in missing:
                return prompt
        return self.fallback


@dataclass(frozen=True)
class ActionSlotSchema:
    action: ActionKind
    required_slots: tuple[str, ...]
    # Any one of these satisfies the first required slot (e.g. email or id).
    identifier_aliases: dict[str, tuple[str, ...]]
    prompt_table: PromptTable


TASK_PROMPTS = PromptTable(
    name="task",
    prompts=((FIELD_TITLE, "What task would you like me to add to your list?"),),
    fallback="Could you provide the missing details?",
)

ACCOUNT_PROMPTS = PromptTable(
    name="account",
    prompts=(
        (FIELD_EMAIL, "What email would you like to use for your account?"),
        (FIELD_PASSWORD, "What password would you like to set for your account?"),
        (FIELD_NAME, "What username would you like to use for your account?"),
        (FIELD_UPDATE_FIELD, "I've found that account. What would you like to update? (e.g., name, role)"),
        (FIELD_NEW_ROLE, "What should the new role be? (e.g., 'admin' or 'user')"),
        (FIELD_NEW_NAME, "What should the new name be?"),
    ),
    fallback="Could you provide the missing account details?",
)

PASSWORD_PROMPTS = PromptTable(
    name="password",
    prompts=(
        (FIELD_EMAIL, "What email would you like to use for your account?"),
        (FIELD_NEW_PASSWORD, "What new password would you like to set for your account?"),
    ),
    fallback="Could you provide the missing password change details?",
)

DELETE_ACCOUNT_PROMPTS = PromptTable(
    name="delete_account",
    prompts=((FIELD_EMAIL, "Which account should I delete? Please provide the email."),),
    fallback="Please provide the missing information to delete the account.",
)


ACTION_SLOT_SCHEMAS: dict[ActionKind, ActionSlotSchema] = {
    ActionKind.CREATE_TODO: ActionSlotSchema(
        action=ActionKind.CREATE_TODO,
        required_slots=(FIELD_TITLE,),
        identifier_aliases={},
        prompt_table=TASK_PROMPTS,
    ),
    ActionKind.CREATE_ACCOUNT: ActionSlotSchema(
        action=ActionKind.CREATE_ACCOUNT,
        required_slots=(FIELD_EMAIL, FIELD_PASSWORD, FIELD_NAME),
        identifier_aliases={},
        prompt_table=ACCOUNT_PROMPTS,
    ),
    ActionKind.CHANGE_PASSWORD: ActionSlotSchema(
        action=ActionKind.CHANGE_PASSWORD,
        required_slots=(FIELD_EMAIL, FIELD_NEW_PASSWORD),
        identifier_aliases={FIELD_EMAIL: ("id",)},
        prompt_table=PASSWORD_PROMPTS,
    ),
    ActionKind.UPDATE_ACCOUNT: ActionSlotSchema(
        action=ActionKind.UPDATE_ACCOUNT,
        required_slots=(FIELD_EMAIL, FIELD_UPDATE_FIELD),
        identifier_aliases={FIELD_EMAIL: ("id",), FIELD_UPDATE_FIELD: (FIELD_NEW_NAME, FIELD_NEW_ROLE, "isActive")},
        prompt_table=ACCOUNT_PROMPTS,
    ),
    ActionKind.DELETE_ACCOUNT: ActionSlotSchema(
        action=ActionKind.DELETE_ACCOUNT,
        required_slots=(FIELD_EMAIL,),
        identifier_aliases={FIELD_EMAIL: ("id",)},
        prompt_table=DELETE_ACCOUNT_PROMPTS,
    ),
}


def get_action_slot_schema(action: ActionKind | str) -> ActionSlotSchema | None:
    try:
        return ACTION_SLOT_SCHEMAS.get(ActionKind(str(action)))
    except ValueError:
        return None


def prompt_table_for_action(action: ActionKind | str) -> PromptTable:
    value = str(action or "")
    if "todo" in value:
        return TASK_PROMPTS
    if value == ActionKind.CHANGE_PASSWORD:
        return PASSWORD_PROMPTS
    if value == ActionKind.DELETE_ACCOUNT:
        return DELETE_ACCOUNT_PROMPTS
    return ACCOUNT_PROMPTS


def build_prompt_for_missing(action: ActionKind | str, missing: list[str]) -> str:
    return prompt_table_for_action(action).prompt_for(missing)


def _is_present(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def find_missing_slots(action: ActionKind | str, data: dict) -> list[str]:
    schema = get_action_slot_schema(action)
    if not schema:
        return []
    payload = data or {}
    missing: list[str] = []
    for slot_name in schema.required_slots:
        candidates = (slot_name,) + schema.identifier_aliases.get(slot_name, ())
        if slot_name == FIELD_UPDATE_FIELD:
            candidates = schema.identifier_aliases.get(slot_name, ())
        if any(_is_present(payload.get(key)) for key in candidates):
            continue
        missing.append(slot_name)
    return missing
