from __future__ import annotations

from datetime import datetime

from agent.extractors import detect_user_mood, get_time_of_day
from agent.types import ActionKind, ActionResult, Intent


TIME_OF_DAY_GREETINGS = {
    "morning": "Good morning! 🌅",
    "afternoon": "Good afternoon! ☀️",
    "evening": "Good evening! 🌆",
    "night": "Good night! 🌙",
}

CHAT_GREETINGS = {
    "morning": "Good morning! 🌅 How are you doing today?",
    "afternoon": "Good afternoon! ☀️ How's your day going?",
    "evening": "Good evening! 🌆 How was your day?",
    "night": "Good night! 🌙 Still up and about?",
}

CHAT_TOPIC_REPLIES = {
    "wellbeing": "I'm doing fantastic, thank you for asking! 😊 How about you? How's everything going?",
    "gratitude": "You're absolutely welcome! 💝 It's my pleasure to help you out.",
    "farewell": "Take care! 👋 I'll be here when you need me. Have a wonderful time!",
}

STATIC_REPLIES = {
    ActionKind.UPDATE_TODO: "Perfect! I've updated that todo for you. ✨ Is there anything else you'd like me to help you with?",
    ActionKind.DELETE_TODO: "Done! That todo has been removed. 🗑️ Sometimes clearing things out feels great, doesn't it?",
    ActionKind.COMPLETE_ALL: (
        "Incredible! 🚀 You've completed ALL your tasks! That's some serious productivity right there! 💪 "
        "How does it feel to be so accomplished?"
    ),
    ActionKind.DELETE_ALL: (
        "Fresh start! 🧹 All todos cleared. Sometimes a clean slate is exactly what we need. Ready to start fresh?"
    ),
    ActionKind.UPDATE_ACCOUNT: (
        "Perfect! ✨ I've updated that account for you. Changes are now active! "
        "Is there anything else you'd like me to help you with?"
    ),
    ActionKind.DELETE_ACCOUNT: (
        "Done! 🗑️ That account has been removed from the system. Sometimes cleaning up accounts feels great, right?"
    ),
    ActionKind.CHANGE_PASSWORD: (
        "Security updated! 🔐 The password has been changed successfully. Keeping things secure is always a good idea! 💪"
    ),
}

EMPTY_TODOS_REPLY = "You're all caught up! 🎉 No todos at the moment. Want to add something to your list?"
EMPTY_ACCOUNTS_REPLY = "No accounts found yet! 🚀 Ready to create your first one? Just let me know the name and email!"
DEFAULT_REPLY = "Done! What else can I help you with?"


def _format_todo_list(todos: list) -> str:
    lines = []
    for todo in todos:
        marker = "✅" if todo.is_completed else "⏳"
        lines.append(f"  • {todo.title} {marker}")
    return "- **Your Tasks**:\n" + "\n".join(lines)


def _format_account_list(accounts: list) -> str:
    lines = [f"  • {account.name} ({account.email}) - Role: {account.role}" for account in accounts]
    return "- **System Accounts**:\n" + "\n".join(lines)


def _completion_encouragement(message: str) -> str:
    mood = detect_user_mood(message)
    if mood == "positive":
        encouragement = "You're absolutely crushing it today! 🚀"
    elif mood == "negative":
        encouragement = "Great job! Every completed task is a step forward! 💪"
    else:
        encouragement = "Woohoo! 🎉 Another task completed!"
    return f"{encouragement} What's next on your list?"


def _account_created_reply(intent: Intent, result: ActionResult, time_of_day: str) -> str:
    name = result.account.name if result.account is not None else intent.data.get("name", "")
    email = result.account.email if result.account is not None else intent.data.get("email", "")
    greeting = TIME_OF_DAY_GREETINGS.get(time_of_day, TIME_OF_DAY_GREETINGS["night"])
    return (
        f"{greeting}\n- **Status**: Account created! 🎉\n- **User**: {name}\n- **Email**: {email}\n\n"
        "They're all set up and ready to go! ✨"
    )


def _chat_reply(intent: Intent, result: ActionResult, time_of_day: str) -> str:
    topic = str(intent.data.get("topic") or "")
    reply = result.message or ""
    if not reply:
        if topic == "greeting":
            reply = CHAT_GREETINGS.get(time_of_day, CHAT_GREETINGS["night"])
        else:
            reply = CHAT_TOPIC_REPLIES.get(topic, "Hey there! 👋 I'm here to chat and help you out.")
    if intent.follow_up:
        reply += f" {intent.follow_up}"
    elif not topic:
        reply += " How can I assist you today?"
    return reply


def build_reply_text(
    message: str,
    intent: Intent,
    result: ActionResult,
    history: list[dict] | None = None,
    now: datetime | None = None,
) -> str:
    if result.need_more_info is not None and result.need_more_info.prompt:
        return result.need_more_info.prompt
    if not result.success:
        detail = result.message or "unknown error"
        return f"Oops! 😅 I couldn't complete that action: {detail}. Could you try rephrasing it for me?"

    time_of_day = get_time_of_day(now)
    action = intent.action

    if action in (ActionKind.CREATE_TODO, ActionKind.READ_TODOS):
        if result.todos:
            return _format_todo_list(result.todos)
        return EMPTY_TODOS_REPLY
    if action == ActionKind.MARK_COMPLETED:
        return _completion_encouragement(message)
    if action == ActionKind.CREATE_ACCOUNT:
        return _account_created_reply(intent, result, time_of_day)
    if action == ActionKind.READ_ACCOUNTS:
        if result.accounts:
            return _format_account_list(result.accounts)
        return EMPTY_ACCOUNTS_REPLY
    if action == ActionKind.CHAT:
        return _chat_reply(intent, result, time_of_day)
    return STATIC_REPLIES.get(action, DEFAULT_REPLY)
