# meditation_api/scripts/seed_achievements.py
import asyncio
from meditation_api.services.achievement_service import achievement_service

async def main():
    result = await achievement_service.seed_achievements()
    print(result)

if __name__ == "__main__":
    asyncio.run(main())
