"""User-facing reply text and follow-up suggestions for each dispatch outcome."""

MESSAGES = {
    "task_created": "I've created a task: \"{title}\". What else would you like me to help you with?",
    "goal_set": "Great! I've set a goal: \"{title}\". This will help you stay focused. What's your next step?",
    "note_created": "I've saved that note for you. Is there anything else you'd like me to remember?",
    "task_completed": "Great job! I've marked \"{title}\" as completed. What's next on your list?",
    "goal_progress": "Perfect! I've updated \"{title}\" to {progress}% progress. Keep up the great work!",
    "priorities": "You have {tasks} high-priority tasks and {goals} active goals. Would you like me to list them?",
    "progress": "You've completed {done} out of {total} tasks. That's {progress}% progress! Keep going!",
    "general": "I heard: \"{utterance}\". How can I help you today?",
    "task_not_found": "I couldn't find a task matching \"{query}\". Could you be more specific?",
    "goal_not_found": "I couldn't find a goal matching \"{query}\". Could you be more specific?",
    "task_unresolved": "I couldn't tell which task you meant. Try saying \"complete\" followed by the task name.",
    "goal_unresolved": (
        "I couldn't tell which goal or what progress you meant. "
        "Try something like \"update goal learn spanish to 40%\"."
    ),
    "store_unavailable": "Sorry, I ran into a problem saving or reading your data. Let me try a different approach.",
}

SUGGESTIONS = {
    "task_created": ["Set a deadline", "Add more details", "Create another task"],
    "goal_set": ["Break it into smaller tasks", "Set milestones", "Track progress"],
    "note_created": ["Add more details", "Create a task from this", "Set a reminder"],
    "task_completed": ["Check your progress", "Create a new task", "Review your goals"],
    "goal_progress": ["Check other goals", "Create related tasks", "Set next milestone"],
    "priorities": ["Show high-priority tasks", "Review goals", "Create new priority"],
    "progress": ["Review completed tasks", "Set new goals", "Plan next steps"],
    "general": ["Create a task", "Set a goal", "Take a note", "Check priorities"],
    "task_not_found": ["List all tasks", "Create a new task", "Check task names"],
    "goal_not_found": ["List all goals", "Create a new goal", "Check goal names"],
    "task_unresolved": ["Complete <task name>", "List all tasks", "Check your progress"],
    "goal_unresolved": ["Update goal <name> to 50%", "List all goals", "Check your progress"],
    "store_unavailable": ["Try again", "Rephrase your request", "Check your connection"],
}

INSIGHT_SUGGESTIONS = [
    "Focus on high-priority tasks first",
    "Review your goals weekly",
    "Take notes during important conversations",
]

DAILY_RECOMMENDATIONS = [
    "Review your completed tasks",
    "Plan tomorrow's priorities",
    "Update goal progress",
    "Reflect on your achievements",
]


def reply(key: str, **kwargs) -> tuple[str, list[str]]:
    return MESSAGES[key].format(**kwargs), list(SUGGESTIONS[key])
