# tstar_feed/api/comments/routes.py
from flask import Blueprint, request, jsonify, current_app

from tstar_feed.api.comments.schemas import CommentCreateSchema, CommentResponseSchema
from tstar_feed.api.posts.routes import _feed_payload
from tstar_feed.core.errors import ContentRejectedError


comments_bp = Blueprint('comments_bp', __name__)

@comments_bp.route('/posts/<string:post_id>/comments', methods=['GET'])
def get_comments(post_id: str):
    """
    특정 게시글의 댓글 목록을 작성 순서대로 조회합니다.
    클라우드 조회가 실패하면 로컬 저장소의 댓글을 반환합니다.
    """
    feed = current_app.services['feed']
    comments = feed.list_comments(post_id)
    return jsonify({"comments": CommentResponseSchema(many=True).dump(comments)}), 200

@comments_bp.route('/posts/<string:post_id>/comments', methods=['POST'])
def create_comment(post_id: str):
    feed = current_app.services['feed']
    try:
        data = CommentCreateSchema().load(request.get_json(silent=True) or {})
        result = feed.add_comment(post_id, data['text'])
        return jsonify(_feed_payload(feed, result)), 201
    except ContentRejectedError as e:
        return jsonify(e.to_dict()), 400
