# tstar_feed/api/auth/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app

from tstar_feed.api.auth.schemas import CredentialsSchema, SessionResponseSchema
from tstar_feed.core.errors import AuthenticationError, ContentRejectedError


auth_bp = Blueprint('auth_bp', __name__)


def _session_payload(session):
    return {"session": SessionResponseSchema().dump(session) if session else None}


@auth_bp.route('/session', methods=['GET'])
def get_session():
    """현재 프로세스의 세션을 반환합니다. 로그인하지 않았으면 session은 null입니다."""
    feed = current_app.services['feed']
    return jsonify(_session_payload(feed.session)), 200


@auth_bp.route('/signup', methods=['POST'])
def signup():
    """
    이메일/비밀번호로 가입합니다.
    - 로컬 모드: 바로 로그인된 세션을 반환합니다.
    - 클라우드 모드: 계정만 생성되며 session은 null입니다. 이후 signin을 호출해야 합니다.
    """
    feed = current_app.services['feed']
    try:
        data = CredentialsSchema().load(request.get_json(silent=True) or {})
        session = feed.sign_up(data['email'], data['password'], data.get('display_name'))
        return jsonify(_session_payload(session)), 201
    except ContentRejectedError as e:
        return jsonify(e.to_dict()), 400
    except AuthenticationError as e:
        return jsonify(e.to_dict()), 401


@auth_bp.route('/signin', methods=['POST'])
def signin():
    feed = current_app.services['feed']
    try:
        data = CredentialsSchema().load(request.get_json(silent=True) or {})
        session = feed.sign_in(data['email'], data['password'])
        return jsonify(_session_payload(session)), 200
    except ContentRejectedError as e:
        return jsonify(e.to_dict()), 400
    except AuthenticationError as e:
        return jsonify(e.to_dict()), 401


@auth_bp.route('/quick', methods=['POST'])
def quick_signin():
    """임시 이름(TraderNNN)으로 바로 로그인합니다. 로컬 모드 전용."""
    feed = current_app.services['feed']
    try:
        session = feed.quick_sign_in()
        return jsonify(_session_payload(session)), 200
    except AuthenticationError as e:
        return jsonify(e.to_dict()), 401


@auth_bp.route('/signout', methods=['POST'])
def signout():
    feed = current_app.services['feed']
    feed.sign_out()
    logging.info("로그아웃 완료")
    return jsonify(_session_payload(None)), 200
