"""Create database schema and seed sample marketplace data for development."""
from __future__ import annotations

import asyncio
import logging
from datetime import date, timedelta

from sqlalchemy import delete

from marketplace.core.config import settings
from marketplace.core.logging import setup_logging
from marketplace.db.session import SessionLocal, engine
from marketplace.models.availability import AvailabilitySlot
from marketplace.models.base import Base
from marketplace.models.profile import Profile
from marketplace.models.property import ListingType, Property, PropertyImage, PropertyStatus
from marketplace.services.availability import DEFAULT_TIME_SLOTS

logger = logging.getLogger("marketplace.bootstrap")

PROFILES = [
	{
		"id": "user-owner-carla",
		"first_name": "Carla",
		"paternal_last_name": "Muñoz",
		"email": "carla.munoz@example.com",
		"phone": "+56 9 5551 2345",
		"profession": "Architect",
	},
	{
		"id": "user-applicant-tomas",
		"first_name": "Tomás",
		"paternal_last_name": "Rojas",
		"email": "tomas.rojas@example.com",
		"phone": "+56 9 7788 1122",
		"profession": "Software engineer",
		"monthly_income": 2_100_000,
		"age": 31,
		"nationality": "Chilean",
		"marital_status": "single",
		"address_street": "Av. Italia",
		"address_number": "1450",
		"address_commune": "Providencia",
	},
]

PROPERTIES = [
	{
		"id": "prop-providencia-loft",
		"owner_id": "user-owner-carla",
		"listing_type": ListingType.RENTAL,
		"address_street": "Av. Providencia",
		"address_number": "2124",
		"address_commune": "Providencia",
		"address_region": "Región Metropolitana",
		"price": 650_000,
		"bedrooms": 2,
		"bathrooms": 1,
		"surface_m2": 58,
		"description": "Bright loft two blocks from the metro.",
		"images": ["https://picsum.photos/seed/providencia/800/600"],
		"availability_in_days": [1, 2, 4],
	},
	{
		"id": "prop-vina-house",
		"owner_id": "user-owner-carla",
		"listing_type": ListingType.SALE,
		"address_street": "Calle Quillota",
		"address_number": "880",
		"address_commune": "Viña del Mar",
		"address_region": "Valparaíso",
		"price": 185_000_000,
		"bedrooms": 4,
		"bathrooms": 3,
		"surface_m2": 210,
		"description": "Family house with garden and sea view.",
		"images": ["https://picsum.photos/seed/vina/800/600"],
		"availability_in_days": [3, 5],
	},
]


async def create_schema() -> None:
	"""Create the database schema if it does not already exist."""

	async with engine.begin() as conn:
		await conn.run_sync(Base.metadata.create_all)


async def seed_profiles() -> None:
	async with SessionLocal() as session:
		async with session.begin():
			for data in PROFILES:
				profile = await session.get(Profile, data["id"])
				if profile is None:
					profile = Profile(id=data["id"])
				for name, value in data.items():
					setattr(profile, name, value)
				session.add(profile)


async def seed_properties() -> None:
	"""Insert or update demo properties, images and upcoming availability."""

	today = date.today()
	async with SessionLocal() as session:
		async with session.begin():
			for data in PROPERTIES:
				fields = {
					key: value
					for key, value in data.items()
					if key not in {"images", "availability_in_days"}
				}
				prop = await session.get(Property, data["id"])
				if prop is None:
					prop = Property(status=PropertyStatus.AVAILABLE, **fields)
					session.add(prop)
				else:
					for name, value in fields.items():
						setattr(prop, name, value)

				await session.execute(delete(PropertyImage).where(PropertyImage.property_id == data["id"]))
				for url in data["images"]:
					session.add(PropertyImage(property_id=data["id"], image_url=url))

				await session.execute(
					delete(AvailabilitySlot).where(AvailabilitySlot.property_id == data["id"])
				)
				for offset in data["availability_in_days"]:
					session.add(
						AvailabilitySlot(
							property_id=data["id"],
							slot_date=today + timedelta(days=offset),
							time_slots=list(DEFAULT_TIME_SLOTS),
							created_by=data["owner_id"],
						)
					)


async def main() -> None:
	setup_logging(settings.log_level, settings.log_format)
	await create_schema()
	await seed_profiles()
	await seed_properties()
	logger.info("Database schema ensured and demo data seeded.")


if __name__ == "__main__":
	asyncio.run(main())
