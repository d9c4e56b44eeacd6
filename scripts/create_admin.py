import argparse
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from taskflow.core.db import SessionLocal
from taskflow.core.security import hash_password
from taskflow.models import User


def run(email: str, password: str, first_name: str, last_name: str):
    db = SessionLocal()
    try:
        email = email.lower().strip()
        user = db.query(User).filter(User.email == email).first()
        if not user:
            user = User(
                email=email,
                first_name=first_name,
                last_name=last_name,
                password_hash=hash_password(password),
                role="admin",
            )
            db.add(user)
        else:
            user.role = "admin"
            user.is_active = True
            user.password_hash = hash_password(password)

        db.commit()
        print(f"Admin ready: {email}")
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--first-name", default="Admin")
    parser.add_argument("--last-name", default="User")
    args = parser.parse_args()
    run(args.email, args.password, args.first_name, args.last_name)
