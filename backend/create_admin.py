"""Create or update an admin account: python create_admin.py <email> <password> [display name]"""
import os
import sys

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from database import SessionLocal, init_db
from models.users import User
from utils.hashing import get_password_hash


def create_admin(email: str, password: str, display_name: str = "Super Admin") -> User:
    init_db()
    session = SessionLocal()
    try:
        email = email.strip().lower()
        user = session.query(User).filter(User.email == email).first()
        if user:
            print(f"Admin {email} already exists, updating password and role.")
            user.password_hash = get_password_hash(password)
            user.role = "admin"
        else:
            user = User(email=email, password_hash=get_password_hash(password), role="admin",
                        display_name=display_name)
            session.add(user)
            print(f"Created admin {email}.")
        session.commit()
        session.refresh(user)
        return user
    finally:
        session.close()


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(1)
    create_admin(sys.argv[1], sys.argv[2], " ".join(sys.argv[3:]) or "Super Admin")
