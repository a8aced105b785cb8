import logging
import time
import uuid as uuid_lib
from typing import Optional, Dict, Any
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from pydantic import BaseModel
import httpx
from jose import jwt, jwk
from jose.exceptions import JWTError, JWKError, ExpiredSignatureError, JWTClaimsError

from app.db.session import get_db
from app.models.profile import Profile, USER_TYPES, USER_TYPE_BUSINESS, USER_TYPE_CUSTOMER
from app.core.config import settings

logger = logging.getLogger(__name__)

# Security scheme for Bearer token
security = HTTPBearer()

# JWKS cache with TTL
_jwks_cache: Optional[Dict[str, Any]] = None
_jwks_cache_time: float = 0
JWKS_CACHE_TTL = 600  # 10 minutes in seconds

SUPPORTED_ALGORITHMS = ["ES256", "RS256"]


def _unauthorized(detail: str = "Token verification failed") -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def fetch_jwks() -> Dict[str, Any]:
    """
    Fetch JWKS from the Supabase endpoint, cached for JWKS_CACHE_TTL seconds.

    Falls back to an expired cache when the endpoint is unreachable.

    Raises:
        HTTPException: 503 if nothing can be fetched and there is no cache
    """
    global _jwks_cache, _jwks_cache_time

    current_time = time.time()
    if _jwks_cache is not None and (current_time - _jwks_cache_time) < JWKS_CACHE_TTL:
        logger.debug("Using cached JWKS")
        return _jwks_cache

    try:
        logger.info(f"Fetching JWKS from {settings.supabase_jwks_url}")
        response = httpx.get(settings.supabase_jwks_url, timeout=10.0)
        response.raise_for_status()
        jwks_data = response.json()
        if not isinstance(jwks_data, dict) or "keys" not in jwks_data:
            raise ValueError("Invalid JWKS structure: missing 'keys' field")
        _jwks_cache = jwks_data
        _jwks_cache_time = current_time
        logger.info(f"JWKS fetched successfully, {len(jwks_data.get('keys', []))} keys found")
        return jwks_data
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Failed to fetch JWKS: {e}")
        if _jwks_cache is not None:
            logger.warning("Using expired JWKS cache due to fetch failure")
            return _jwks_cache
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Unable to verify token: JWKS endpoint unavailable"
        )


def get_signing_key(token: str, jwks: Dict[str, Any]) -> Dict[str, Any]:
    """Return the JWK whose kid matches the token header."""
    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError as e:
        logger.warning(f"Unreadable token header: {e}")
        raise _unauthorized()

    kid = unverified_header.get("kid")
    if not kid:
        logger.warning("Token missing 'kid' in header")
        raise _unauthorized()

    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key

    logger.warning(f"Key ID '{kid}' not found in JWKS")
    raise _unauthorized()


class Identity(BaseModel):
    """Represents the authenticated identity from the token."""
    uid: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    user_type: Optional[str] = None


def _normalize_supabase_uid(uid: uuid_lib.UUID | str) -> uuid_lib.UUID:
    """Normalize Supabase UID (JWT sub) to uuid.UUID for storage/lookup."""
    if isinstance(uid, uuid_lib.UUID):
        return uid
    try:
        return uuid_lib.UUID(str(uid))
    except (ValueError, TypeError) as e:
        logger.warning(f"Invalid subject format: {uid!r} -> {e}")
        raise _unauthorized("Invalid subject (sub) claim in token")


def verify_supabase_token(token: str) -> dict:
    """
    Verify a Supabase JWT and return its claims.

    Checks signature (JWKS), algorithm, audience, issuer and expiry.

    Raises:
        HTTPException: 401 on any verification failure
    """
    jwks = fetch_jwks()
    jwk_key = get_signing_key(token, jwks)

    try:
        key = jwk.construct(jwk_key)
    except JWKError as e:
        logger.error(f"Failed to construct key from JWK: {e}")
        raise _unauthorized()

    header_alg = jwt.get_unverified_header(token).get("alg")
    jwk_alg = jwk_key.get("alg")
    if header_alg and jwk_alg and header_alg != jwk_alg:
        logger.warning(f"Algorithm mismatch: header={header_alg}, JWK={jwk_alg}")
        raise _unauthorized()
    algorithm = header_alg or jwk_alg or "ES256"
    if algorithm not in SUPPORTED_ALGORITHMS:
        logger.warning(f"Unsupported algorithm: {algorithm}")
        raise _unauthorized()

    try:
        payload = jwt.decode(
            token,
            key,
            algorithms=SUPPORTED_ALGORITHMS,
            audience=settings.supabase_jwt_audience,
            issuer=settings.supabase_issuer,
            options={
                "verify_signature": True,
                "verify_aud": True,
                "verify_iss": True,
                "verify_exp": True,
            }
        )
    except ExpiredSignatureError:
        logger.warning("Token has expired")
        raise _unauthorized()
    except JWTClaimsError as e:
        logger.warning(f"Token claims validation failed: {e}")
        raise _unauthorized()
    except JWTError as e:
        logger.warning(f"JWT verification error: {e}")
        raise _unauthorized()

    logger.debug(f"Token verified successfully for sub: {payload.get('sub')}")
    return payload


def get_current_identity(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Identity:
    """
    Verify the Bearer token and extract the caller's identity.

    Sign-up details (full_name, user_type, phone) come from the token's
    user_metadata, where the sign-up form stores them.
    """
    token = credentials.credentials
    if not token:
        raise _unauthorized("Missing token")

    claims = verify_supabase_token(token)

    uid = claims.get("sub")
    if not uid:
        logger.warning("Token missing subject (sub) claim")
        raise _unauthorized("Token missing subject (sub) claim")

    user_metadata = claims.get("user_metadata") or {}
    return Identity(
        uid=uid,
        email=claims.get("email"),
        full_name=user_metadata.get("full_name"),
        phone=user_metadata.get("phone"),
        user_type=user_metadata.get("user_type"),
    )


def get_or_create_profile(db: Session, identity: Identity) -> Profile:
    """
    Get the profile for the identity, creating it from the token's sign-up
    metadata on first sight. Races on creation resolve to the existing row.
    """
    profile_id = _normalize_supabase_uid(identity.uid)
    profile = db.query(Profile).filter(Profile.id == profile_id).first()
    if profile:
        return profile

    user_type = identity.user_type if identity.user_type in USER_TYPES else USER_TYPE_CUSTOMER
    logger.info(f"Creating profile for id={profile_id}, user_type={user_type}, email={identity.email}")
    profile = Profile(
        id=profile_id,
        full_name=identity.full_name,
        email=identity.email,
        phone=identity.phone,
        user_type=user_type,
    )
    db.add(profile)
    try:
        db.commit()
        db.refresh(profile)
        return profile
    except IntegrityError:
        db.rollback()
        profile = db.query(Profile).filter(Profile.id == profile_id).first()
        if profile is not None:
            return profile
        raise


def get_current_profile(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
) -> Profile:
    """The viewer: profile of the authenticated Supabase user."""
    return get_or_create_profile(db, identity)


def require_business(profile: Profile = Depends(get_current_profile)) -> Profile:
    """Raise 403 unless the viewer has a business account."""
    if profile.user_type != USER_TYPE_BUSINESS:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Business account required")
    return profile
