"""
Seed a development database with sample parks and their dependent records

Usage:
    python scripts/seed_sample_parks.py [--parks N]
"""
import sys
import os
import argparse
from datetime import date, timedelta

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from parkhub.db import Base, engine, SessionLocal
from parkhub.models.models import (
    Park,
    Tree,
    TreeMaintenance,
    Activity,
    Incident,
    Amenity,
    ParkAmenity,
    ParkImage,
    Asset,
    ParkEvaluation,
    ParkDocument,
    Volunteer,
    Instructor,
)

SAMPLE_PARKS = [
    {"name": "Parque Agua Azul", "park_type": "metropolitano", "address": "Calz. Independencia Sur 973", "postal_code": "44100"},
    {"name": "Parque Revolución", "park_type": "urbano", "address": "Av. Juárez 1000", "postal_code": "44100"},
    {"name": "Bosque Los Colomos", "park_type": "bosque", "address": "El Chaco 3200", "postal_code": "44660"},
    {"name": "Parque Alcalde", "park_type": "urbano", "address": "Jesús García 2227", "postal_code": "44270"},
]

AMENITIES = [("Juegos infantiles", "playground"), ("Baños", "toilet"), ("Estacionamiento", "parking"), ("Ciclovía", "bike")]
SPECIES = ["Jacaranda mimosifolia", "Tabebuia rosea", "Ficus benjamina", "Fraxinus uhdei"]


def seed(n_parks: int) -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        amenities = []
        for name, icon in AMENITIES:
            a = db.query(Amenity).filter(Amenity.name == name).first()
            if not a:
                a = Amenity(name=name, icon=icon)
                db.add(a)
            amenities.append(a)
        db.flush()

        today = date.today()
        for i, data in enumerate(SAMPLE_PARKS[:n_parks]):
            if db.query(Park).filter(Park.name == data["name"]).first():
                print(f"  [SKIP] {data['name']} already exists")
                continue
            park = Park(**data)
            db.add(park)
            db.flush()

            for j, species in enumerate(SPECIES):
                tree = Tree(park_id=park.id, code=f"P{park.id}-T{j + 1:03d}", species=species, health_status="bueno")
                db.add(tree)
                db.flush()
                db.add(TreeMaintenance(tree_id=tree.id, maintenance_type="poda", performed_at=today - timedelta(days=30 * j)))
            for a in amenities[: 2 + i % 3]:
                db.add(ParkAmenity(park_id=park.id, amenity_id=a.id))
            db.add(ParkImage(park_id=park.id, image_url=f"/uploads/parks/{park.id}/main.jpg", is_primary=True))
            db.add(Activity(park_id=park.id, title="Yoga al aire libre", category="deportiva", start_date=today))
            db.add(Activity(park_id=park.id, title="Taller de composta", category="ambiental", start_date=today + timedelta(days=7)))
            db.add(Incident(park_id=park.id, title="Luminaria dañada", severity="medium"))
            db.add(Asset(park_id=park.id, name="Banca de concreto", category="mobiliario"))
            db.add(ParkEvaluation(park_id=park.id, evaluator_name="Inspección municipal", overall_rating=4))
            db.add(ParkDocument(park_id=park.id, title="Reglamento interno", file_url=f"/uploads/parks/{park.id}/reglamento.pdf"))
            db.add(Volunteer(full_name=f"Voluntario {park.id}", email=f"voluntario{park.id}@example.org", preferred_park_id=park.id))
            db.add(Instructor(full_name=f"Instructor {park.id}", email=f"instructor{park.id}@example.org", preferred_park_id=park.id,
                              specialties=["yoga"], experience_years=3))
            print(f"  [OK] {park.name} (id={park.id})")
        db.commit()
    finally:
        db.close()


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed sample parks")
    parser.add_argument("--parks", type=int, default=len(SAMPLE_PARKS))
    args = parser.parse_args()
    seed(max(1, args.parks))
    return 0


if __name__ == "__main__":
    sys.exit(main())
