# meditation_api/db/mongo.py
from motor.motor_asyncio import AsyncIOMotorClient

from ..config import MONGODB_URL, MONGODB_DB

# tz_aware so stored datetimes compare cleanly with now_utc()
client = AsyncIOMotorClient(MONGODB_URL, tz_aware=True)
db = client[MONGODB_DB]

# Collections
users_collection = db["users"]
achievements_collection = db["achievements"]
user_achievements_collection = db["user_achievements"]
meditation_sessions_collection = db["meditation_sessions"]
stress_assessments_collection = db["stress_assessments"]
group_sessions_collection = db["group_sessions"]
chat_messages_collection = db["chat_messages"]
stress_techniques_collection = db["stress_techniques"]


# Call this once at startup to ensure indexes exist.
async def init_db_indexes() -> None:
    # Users: unique email
    await users_collection.create_index("email", unique=True)
    await users_collection.create_index("username_lc", unique=True, sparse=True)

    # Achievements catalogue: seeded by name
    await achievements_collection.create_index("name", unique=True)
    await achievements_collection.create_index("criteria.type")

    # One progress row per (user, achievement)
    await user_achievements_collection.create_index(
        [("user_id", 1), ("achievement_id", 1)],
        unique=True,
        name="user_achievement_unique",
    )
    await user_achievements_collection.create_index(
        [("user_id", 1), ("is_completed", 1)],
        name="user_completed",
    )
    await user_achievements_collection.create_index("achievement_id")

    # Meditation sessions
    await meditation_sessions_collection.create_index([("user_id", 1), ("start_time", -1)])
    await meditation_sessions_collection.create_index([("user_id", 1), ("completed", 1)])
    await meditation_sessions_collection.create_index("tags")
    # At most one active (incomplete) session per user
    await meditation_sessions_collection.create_index(
        [("user_id", 1)],
        unique=True,
        partialFilterExpression={"completed": False},
        name="unique_active_session_per_user",
    )

    # Stress assessments
    await stress_assessments_collection.create_index([("user_id", 1), ("timestamp", -1)])
    await stress_assessments_collection.create_index([("user_id", 1), ("score", 1)])

    # Stress technique catalogue: seeded by name, searchable by text
    await stress_techniques_collection.create_index("name", unique=True)
    await stress_techniques_collection.create_index("category")
    await stress_techniques_collection.create_index("difficulty_level")
    await stress_techniques_collection.create_index("tags")
    await stress_techniques_collection.create_index(
        [("name", "text"), ("description", "text"), ("tags", "text")],
        name="technique_text",
    )

    # Group sessions
    await group_sessions_collection.create_index([("status", 1), ("scheduled_time", 1)])
    await group_sessions_collection.create_index("host_id")
    await group_sessions_collection.create_index("participants.user_id")

    # Chat: newest-first per session
    await chat_messages_collection.create_index(
        [("session_id", 1), ("created_at", -1)],
        name="session_createdAt_desc",
    )
