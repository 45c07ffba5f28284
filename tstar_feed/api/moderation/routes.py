# tstar_feed/api/moderation/routes.py
from flask import Blueprint, request, jsonify, current_app

from tstar_feed.api.moderation.schemas import BlockCreateSchema
from tstar_feed.core.errors import ContentRejectedError
from tstar_feed.services.moderation import block_key


moderation_bp = Blueprint('moderation_bp', __name__)

@moderation_bp.route('/blocks', methods=['GET'])
def get_blocks():
    """현재 세션의 차단 목록을 조회합니다."""
    feed = current_app.services['feed']
    blocked = feed.moderation.blocked_for(feed.session)
    return jsonify({"owner": block_key(feed.session), "blocked": sorted(blocked)}), 200

@moderation_bp.route('/blocks', methods=['POST'])
def block_author():
    """
    작성자를 현재 세션의 차단 목록에 추가합니다.
    이후 피드 조회에서 해당 작성자의 게시글이 제외됩니다.
    """
    feed = current_app.services['feed']
    try:
        data = BlockCreateSchema().load(request.get_json(silent=True) or {})
        blocked = feed.block_author(data['identifier'])
        return jsonify({"owner": block_key(feed.session), "blocked": sorted(blocked)}), 201
    except ContentRejectedError as e:
        return jsonify(e.to_dict()), 400
