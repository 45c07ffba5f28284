# tstar_feed/api/auth/services.py
import logging
import random
from abc import ABC, abstractmethod
from typing import Optional

import requests
from firebase_admin import auth as firebase_auth, firestore

from tstar_feed.core.context import CloudContext
from tstar_feed.core.errors import AuthenticationError
from tstar_feed.models.session import Session
from tstar_feed.schemas.feed_schema import load_session, dump_session
from tstar_feed.services.kv_store import KeyValueStore, StorageKeys
from tstar_feed.utils.ids import time_based_id


def random_trader_name() -> str:
    return f"Trader{random.randint(0, 999)}"

def email_prefix(email: Optional[str]) -> str:
    return (email or "").split("@")[0].strip()


class AuthProvider(ABC):
    """가입/로그인/로그아웃 계약. 로컬/클라우드 구현이 있습니다."""

    @abstractmethod
    def restore(self) -> Optional[Session]:
        """프로세스 시작 시 복원할 세션"""

    @abstractmethod
    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> Optional[Session]:
        """계정을 만듭니다. 바로 로그인되는 경우 세션을 반환합니다."""

    @abstractmethod
    def sign_in(self, email: str, password: str) -> Session:
        """로그인하고 세션을 반환합니다."""

    @abstractmethod
    def quick_sign_in(self) -> Session:
        """이메일 없이 임시 이름으로 로그인합니다."""

    @abstractmethod
    def sign_out(self, session: Optional[Session]) -> None:
        """로그아웃합니다."""


class LocalAuthProvider(AuthProvider):
    """
    로컬 모드 인증. 비밀번호를 검증하지 않고 표시 이름만으로 세션을 만들어 로컬 저장소에 보관합니다.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _sign_in_as(self, display_name: Optional[str], email: Optional[str] = None) -> Session:
        session = Session(
            uid=time_based_id("u"),
            display_name=display_name or random_trader_name(),
            email=email or None,
        )
        self.store.save(StorageKeys.SESSION, dump_session(session))
        logging.info(f"로컬 로그인 (uid: {session.uid}, name: {session.display_name})")
        return session

    def restore(self) -> Optional[Session]:
        return load_session(self.store.load(StorageKeys.SESSION, None))

    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> Session:
        return self._sign_in_as(display_name or email_prefix(email), email)

    def sign_in(self, email: str, password: str) -> Session:
        return self._sign_in_as(email_prefix(email), email)

    def quick_sign_in(self) -> Session:
        return self._sign_in_as(None)

    def sign_out(self, session: Optional[Session]) -> None:
        self.store.save(StorageKeys.SESSION, None)


class CloudAuthProvider(AuthProvider):
    """
    Firebase 인증.
    - 가입: Admin SDK로 계정을 만들고 'users' 문서를 남깁니다. (문서 저장 실패는 무시)
    - 로그인: Identity Toolkit REST API(signInWithPassword)로 이메일/비밀번호를 검증합니다.
    - 로그아웃: 리프레시 토큰을 폐기합니다. 실패해도 세션은 해제됩니다.
    """
    SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"
    REQUEST_TIMEOUT_SECONDS = 30

    def __init__(self, context: CloudContext):
        self.context = context
        self.users_ref = context.db.collection('users')

    def restore(self) -> Optional[Session]:
        # 클라우드 세션은 로그인 요청으로만 만들어집니다.
        return None

    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> None:
        try:
            user = firebase_auth.create_user(
                email=email,
                password=password,
                display_name=display_name or None,
                app=self.context.app,
            )
        except Exception as e:
            logging.warning(f"Firebase 가입 실패 (email: {email}): {e}")
            raise AuthenticationError(str(e)) from e

        try:
            self.users_ref.add({
                'uid': user.uid,
                'email': email,
                'displayName': display_name or email,
                'createdAt': firestore.SERVER_TIMESTAMP,
            })
        except Exception as e:
            logging.warning(f"users 문서 생성 실패 (uid: {user.uid}): {e}")

        logging.info(f"Firebase 가입 성공 (uid: {user.uid})")
        return None

    def sign_in(self, email: str, password: str) -> Session:
        if not self.context.web_api_key:
            raise AuthenticationError("Password sign-in is not configured (FIREBASE_WEB_API_KEY).")
        try:
            response = requests.post(
                self.SIGN_IN_URL,
                params={"key": self.context.web_api_key},
                json={"email": email, "password": password, "returnSecureToken": True},
                timeout=self.REQUEST_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            logging.warning(f"Firebase 로그인 요청 실패: {e}")
            raise AuthenticationError(f"Sign in request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if response.status_code != 200:
            message = (payload.get("error") or {}).get("message") or f"HTTP {response.status_code}"
            logging.warning(f"Firebase 로그인 거부 (email: {email}): {message}")
            raise AuthenticationError(message)

        return Session(
            uid=payload["localId"],
            display_name=payload.get("displayName") or payload.get("email") or "Trader",
            email=payload.get("email") or email,
        )

    def quick_sign_in(self) -> Session:
        raise AuthenticationError("Quick sign-in is only available in local mode. Use email sign-in.")

    def sign_out(self, session: Optional[Session]) -> None:
        if session is None:
            return
        try:
            firebase_auth.revoke_refresh_tokens(session.uid, app=self.context.app)
        except Exception as e:
            logging.warning(f"Firebase 로그아웃 처리 실패 (uid: {session.uid}): {e}")
