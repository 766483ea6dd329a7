from __future__ import annotations
import structlog
from fitchallenge.schemas.challenge import Challenge
from fitchallenge.services.documents import DocumentStore, CHALLENGES_KEY

log = structlog.get_logger()

DIFFICULTY_ORDER = {"beginner": 1, "intermediate": 2, "advanced": 3}

DEFAULT_CHALLENGES = [
    {
        "id": "1",
        "title": "30-Day Running Challenge",
        "category": "running",
        "difficulty": "beginner",
        "duration": 30,
        "description": "Build your running endurance from scratch. Start with 10 minutes and work your way up to 30-minute continuous runs.",
        "imageUrl": "/static/images/placeholder-workout.jpg",
        "participants": 2453,
        "goals": {"totalDistance": 50, "totalWorkouts": 20, "avgPace": 6.5},  # km, -, min/km
        "rewards": {"points": 500, "badge": "30-Day Runner", "achievements": ["First Mile", "Marathon Ready", "Consistent Runner"]},
        "createdAt": "2024-01-01T00:00:00Z",
        "featured": True,
    },
    {
        "id": "2",
        "title": "Yoga Flow 14-Day",
        "category": "yoga",
        "difficulty": "beginner",
        "duration": 14,
        "description": "Improve flexibility and mindfulness with daily yoga sessions. Perfect for beginners looking to establish a consistent practice.",
        "imageUrl": "/static/images/placeholder-workout.jpg",
        "participants": 1892,
        "goals": {"totalSessions": 14, "totalMinutes": 280},
        "rewards": {"points": 300, "badge": "Zen Master", "achievements": ["First Flow", "Flexible Warrior"]},
        "createdAt": "2024-01-05T00:00:00Z",
        "featured": True,
    },
    {
        "id": "3",
        "title": "Strength Builder 60-Day",
        "category": "strength",
        "difficulty": "intermediate",
        "duration": 60,
        "description": "Build lean muscle and increase your overall strength with progressive resistance training. Includes nutrition guidance.",
        "imageUrl": "/static/images/placeholder-workout.jpg",
        "participants": 3721,
        "goals": {"totalWorkouts": 40, "totalSets": 480, "weightLifted": 50000},  # kg
        "rewards": {"points": 1000, "badge": "Iron Warrior", "achievements": ["Strength Foundation", "Progressive Overload", "Muscle Builder"]},
        "createdAt": "2024-01-10T00:00:00Z",
        "featured": True,
    },
    {
        "id": "4",
        "title": "HIIT Burn 30-Day",
        "category": "hiit",
        "difficulty": "advanced",
        "duration": 30,
        "description": "High-intensity interval training to maximize calorie burn and improve cardiovascular fitness. Not for the faint of heart!",
        "imageUrl": "/static/images/placeholder-workout.jpg",
        "participants": 1234,
        "goals": {"totalWorkouts": 20, "caloriesBurned": 10000, "totalMinutes": 400},
        "rewards": {"points": 800, "badge": "HIIT Champion", "achievements": ["Intensity Master", "Cardio King"]},
        "createdAt": "2024-01-15T00:00:00Z",
        "featured": False,
    },
    {
        "id": "5",
        "title": "Cycling Endurance 30-Day",
        "category": "cycling",
        "difficulty": "intermediate",
        "duration": 30,
        "description": "Build your cycling stamina with progressive distance goals. Suitable for outdoor or indoor cycling enthusiasts.",
        "imageUrl": "/static/images/placeholder-workout.jpg",
        "participants": 987,
        "goals": {"totalDistance": 300, "totalRides": 15, "elevationGain": 2000},  # km, -, m
        "rewards": {"points": 600, "badge": "Cycling Pro", "achievements": ["Century Rider", "Hill Climber"]},
        "createdAt": "2024-01-20T00:00:00Z",
        "featured": False,
    },
]


def sort_challenges(challenges: list[Challenge], sort: str | None) -> list[Challenge]:
    if sort in ("popular", "participants"):
        return sorted(challenges, key=lambda c: c.participants, reverse=True)
    if sort == "newest":
        # Undated entries sink to the bottom
        return sorted(challenges, key=lambda c: c.created_at.timestamp() if c.created_at else float("-inf"), reverse=True)
    if sort == "difficulty":
        return sorted(challenges, key=lambda c: DIFFICULTY_ORDER[c.difficulty])
    return challenges


class ChallengeCatalog:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def all(self) -> list[Challenge]:
        docs = await self.store.get(CHALLENGES_KEY) or []
        return [Challenge.model_validate(d) for d in docs]

    async def save(self, challenges: list[Challenge]) -> None:
        await self.store.set(CHALLENGES_KEY, [c.to_document() for c in challenges])

    async def seed_defaults(self) -> bool:
        """Install the default catalog when empty. Returns True when seeded."""
        async with self.store.lock(CHALLENGES_KEY):
            if await self.store.get(CHALLENGES_KEY):
                return False
            await self.save([Challenge.model_validate(d) for d in DEFAULT_CHALLENGES])
        log.info("catalog_seeded", count=len(DEFAULT_CHALLENGES))
        return True

    async def get(self, challenge_id: str) -> Challenge | None:
        return next((c for c in await self.all() if c.id == challenge_id), None)

    async def by_category(self, category: str) -> list[Challenge]:
        challenges = await self.all()
        if category == "all":
            return challenges
        return [c for c in challenges if c.category == category]

    async def by_difficulty(self, difficulty: str) -> list[Challenge]:
        challenges = await self.all()
        if difficulty == "all":
            return challenges
        return [c for c in challenges if c.difficulty == difficulty]

    async def featured(self, limit: int = 3) -> list[Challenge]:
        featured = [c for c in await self.all() if c.featured]
        return sort_challenges(featured, "popular")[:limit]

    async def browse(
        self,
        *,
        category: str = "all",
        difficulty: str = "all",
        min_duration: int | None = None,
        sort: str | None = "popular",
        query: str | None = None,
    ) -> list[Challenge]:
        challenges = await self.all()
        if category != "all":
            challenges = [c for c in challenges if c.category == category]
        if difficulty != "all":
            challenges = [c for c in challenges if c.difficulty == difficulty]
        if min_duration is not None:
            challenges = [c for c in challenges if c.duration >= min_duration]
        challenges = sort_challenges(challenges, sort)
        q = (query or "").strip().lower()
        if q:
            challenges = [
                c for c in challenges
                if q in c.title.lower() or q in c.description.lower() or q in c.category.lower()
            ]
        return challenges

    async def adjust_participants_locked(self, challenge_id: str, increment: int) -> Challenge | None:
        """Caller must hold the CHALLENGES_KEY lock. Unknown ids are ignored."""
        challenges = await self.all()
        target = next((c for c in challenges if c.id == challenge_id), None)
        if target is None:
            return None
        target.participants = max(target.participants + increment, 0)
        await self.save(challenges)
        return target

    async def search(self, query: str, **filters) -> list[Challenge]:
        """Case-insensitive match on title, description or category, after any filters."""
        return await self.browse(query=query, **filters)
