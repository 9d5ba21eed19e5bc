import logging, secrets
from datetime import timedelta
from urllib.parse import urlencode, urljoin, urlparse

import bcrypt
from flask import (
    Blueprint, current_app, jsonify, redirect, render_template, request, url_for
)
from flask_login import LoginManager, UserMixin, login_required, login_user, logout_user
from sqlalchemy import select

from .cart import adopt_guest_cart
from .database import get_db
from .errors import wants_json
from .models import User, VerificationToken, utcnow
from .notify import send_mail

log = logging.getLogger(__name__)
bp = Blueprint("auth", __name__)
login_manager = LoginManager()
login_manager.login_view = "auth.login"


class LoginUser(UserMixin):
    def __init__(self, u: User):
        self.id = str(u.id)
        self.email = u.email
        self.name = u.name


@login_manager.user_loader
def load_user(user_id):
    with get_db().session() as db:
        u = db.get(User, int(user_id))
        return LoginUser(u) if u else None


@login_manager.unauthorized_handler
def unauthorized():
    if wants_json():
        return jsonify({"error": "Sign in required"}), 401
    return redirect(url_for("auth.login", next=request.path))


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def check_password(password: str, pw_hash) -> bool:
    if not pw_hash:
        return False
    return bcrypt.checkpw(password.encode(), pw_hash.encode())


def is_safe_url(target):
    ref_url = urlparse(request.host_url)
    test_url = urlparse(urljoin(request.host_url, target))
    return test_url.scheme in ("http", "https") and ref_url.netloc == test_url.netloc


def _sign_in(u: User):
    """Log the user in and fold any guest cart into theirs; returns the redirect."""
    login_user(LoginUser(u))
    next_url = request.values.get("next") or url_for("catalog.index")
    resp = redirect(next_url if is_safe_url(next_url) else url_for("catalog.index"))
    adopt_guest_cart(u.id, resp)
    return resp


# --------------------------- PASSWORD SIGN-IN ---------------------------
@bp.get("/login")
def login():
    return render_template("login.html")


@bp.post("/login")
def login_post():
    email = request.form.get("email", "").strip().lower()
    password = request.form.get("password", "")
    with get_db().session() as db:
        u = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if not u or not check_password(password, u.password_hash):
            log.info(f"Failed login attempt for {email}")
            return render_template("login.html", error="Invalid credentials"), 401
    return _sign_in(u)


@bp.get("/register")
def register():
    return render_template("register.html")


@bp.post("/register")
def register_post():
    email = request.form.get("email", "").strip().lower()
    password = request.form.get("password", "")
    name = request.form.get("name", "").strip() or None
    if not email or not password:
        return render_template("register.html", error="Email and password required"), 400
    with get_db().session() as db:
        exists = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if exists:
            return render_template("register.html", error="User already exists"), 409
        u = User(email=email, name=name, password_hash=hash_password(password))
        db.add(u)
        db.commit()
    log.info(f"Registered user {u.id} <{email}>")
    return _sign_in(u)


@bp.get("/logout")
@login_required
def logout():
    logout_user()
    return redirect(url_for("auth.login"))


# --------------------------- EMAIL LINK SIGN-IN ---------------------------
@bp.post("/login/email")
def login_email():
    email = request.form.get("email", "").strip().lower()
    if not email:
        return render_template("login.html", error="Email required"), 400
    token = secrets.token_urlsafe(32)
    hours = current_app.config["SIGNIN_TOKEN_HOURS"]
    with get_db().session() as db:
        db.add(VerificationToken(identifier=email, token=token,
                                 expires=utcnow() + timedelta(hours=hours)))
        db.commit()
    base = current_app.config["PUBLIC_BASE_URL"].rstrip("/")
    link = f"{base}/login/verify?{urlencode({'token': token, 'email': email})}"
    send_mail(email, f"Sign in to {current_app.config['SITE_NAME']}",
              f"Use this link to sign in:\n\n{link}\n\nIt expires in {hours} hours.")
    return render_template("login.html", message="Check your inbox for a sign-in link.")


@bp.get("/login/verify")
def login_verify():
    token = request.args.get("token", "")
    email = request.args.get("email", "").strip().lower()
    with get_db().session() as db:
        vt = db.execute(
            select(VerificationToken).where(VerificationToken.token == token,
                                            VerificationToken.identifier == email)
        ).scalar_one_or_none()
        if not vt:
            return render_template("login.html", error="Invalid sign-in link"), 400
        expired = vt.expires < utcnow()
        db.delete(vt)
        if expired:
            db.commit()
            return render_template("login.html", error="Sign-in link expired"), 400
        u = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if not u:
            u = User(email=email)
            db.add(u)
        db.commit()
    return _sign_in(u)
