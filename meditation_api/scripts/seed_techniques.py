# meditation_api/scripts/seed_techniques.py
import asyncio
from meditation_api.services.stress_technique_service import stress_technique_service

async def main():
    result = await stress_technique_service.seed_techniques()
    print(result)

if __name__ == "__main__":
    asyncio.run(main())
