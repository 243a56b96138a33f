import argparse
import logging

from healthnet.database import get_db_context, init_db
from healthnet.exceptions import HealthNetError
from healthnet.models.all_models import FacilityType, User
from healthnet.services.facilities import create_facility
from healthnet.services.users import create_admin

logger = logging.getLogger(__name__)

def seed(admin_name, admin_email, admin_password, admin_phone, facility_name, facility_type="HOSPITAL", city_town=None):
    """Create the first facility and an admin attached to it."""
    init_db()
    with get_db_context() as db:
        if db.query(User).filter(User.email == admin_email.strip().lower()).first():
            print(f"Error: User with email {admin_email} already exists")
            return None

        try:
            facility = create_facility(db, {
                "name": facility_name,
                "type": FacilityType[facility_type.upper()],
                "city_town": city_town,
            })
            admin = create_admin(db, {
                "name": admin_name,
                "email": admin_email,
                "password": admin_password,
                "phone": admin_phone,
                "facility_id": facility.hospital_id,
            })
        except HealthNetError as exc:
            db.rollback()
            print(f"Error seeding database: {exc.message}")
            return None

        print(f"Facility created: {facility.hospital_id} ({facility.name})")
        print(f"Admin user created successfully: {admin.email}")
        print(f"Admin ID: {admin.user_id}")
        return admin

def main():
    parser = argparse.ArgumentParser(description="Create a facility and its first admin user")
    parser.add_argument("--name", required=True, help="Admin full name")
    parser.add_argument("--email", required=True, help="Admin email address")
    parser.add_argument("--password", required=True, help="Admin password")
    parser.add_argument("--phone", required=True, help="Admin phone number")
    parser.add_argument("--facility-name", required=True, help="Facility name")
    parser.add_argument("--facility-type", default="hospital", choices=["hospital", "clinic", "laboratory"], help="Facility type")
    parser.add_argument("--city", default=None, help="Facility city or town")

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)

    seed(
        admin_name=args.name,
        admin_email=args.email,
        admin_password=args.password,
        admin_phone=args.phone,
        facility_name=args.facility_name,
        facility_type=args.facility_type,
        city_town=args.city,
    )

if __name__ == "__main__":
    main()
