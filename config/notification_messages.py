"""Notification copy: event templates and motivational messages."""

import random
from typing import Any, Dict, List

MOTIVATION_TITLE = "💪 Daily Motivation"

PERSONAL_MOTIVATIONAL_MESSAGES: List[str] = [
    "💪 You're doing amazing work! Every healthy choice counts!",
    "🌟 Remember: progress, not perfection! Keep going!",
    "❤️ Your body is your temple. Treat it with love today!",
    "🚀 Small steps lead to big changes. You can do it!",
    "💫 Believe in yourself, you are stronger than you think!",
    "🥗 Every meal is a new chance to nourish yourself!",
    "🔑 Consistency is key. You're building great habits!",
    "🎯 Take a moment to appreciate how far you've come!",
    "📈 Success is the sum of small efforts repeated every day!",
    "🙏 Your future self will thank you for today's choices!",
    "🏠 You're building a lifestyle, not just a diet!",
    "⏰ Trust the process, transformation takes time!",
    "🌱 Be patient with yourself, growth happens gradually!",
    "🏆 Every step forward is a win worth celebrating!",
    "👣 Progress is progress, no matter how small!",
    "🥇 Your only competition is who you were yesterday!",
    "🤝 Believe in yourself as much as your coach believes in you!",
    "🌅 Every day is a new chance to do well!",
    "💧 Hydrate! Your body needs water to work well!",
    "🌿 Add some colour to your plate today!",
    "👂 Listen to your body: eat when hungry, stop when full!",
    "👨‍🍳 Try a new healthy recipe this week!",
    "🚶‍♀️ Take a short walk after eating to help digestion!",
    "😴 Sleep is key for recovery, aim for 7 to 9 hours!",
    "🔍 Read food labels, knowledge is power!",
    "🥩 Include protein in every meal to stay full longer!",
    "🍎 Limit processed foods and choose whole foods!",
]

EVENT_NOTIFICATIONS: Dict[str, Dict[str, Any]] = {
    "invitation_received": {
        "title": "🔔 New Client Request",
        "body": "{user_name} wants you as their nutrition coach!",
        "screen": "Invitations",
    },
    "invitation_accepted": {
        "title": "🎉 Request Accepted!",
        "body": "{coach_name} accepted your coaching request. You can now select them as your coach!",
        "screen": "Coaching",
    },
    "invitation_declined": {
        "title": "📝 Request Update",
        "body": "{coach_name} is not available right now. Explore other coaches!",
        "screen": "Coaching",
    },
    "coach_selected": {
        "title": "🎯 New Client Selected You!",
        "body": "{user_name} selected you as their nutrition coach. Say hello!",
        "screen": "Clients",
    },
    "new_message": {
        "title": "💬 New Message from {sender_name}",
        "body": "{preview}",
        "screen": "Messages",
    },
    "nutrition_plan_updated": {
        "title": "📋 Plan Updated by {coach_name}",
        "body": "Your nutrition plan has been updated. Check it out!",
        "screen": "NutritionPlan",
    },
}


def get_random_message(messages: List[str] = PERSONAL_MOTIVATIONAL_MESSAGES) -> str:
    return random.choice(messages)


def render_event(event_type: str, **values: Any) -> Dict[str, str]:
    """Fill an event template; unknown events raise KeyError."""
    template = EVENT_NOTIFICATIONS[event_type]
    return {
        "title": template["title"].format(**values),
        "body": template["body"].format(**values),
        "screen": template["screen"],
    }
