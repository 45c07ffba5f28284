# tstar_feed/api/posts/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app

from tstar_feed.api.posts.schemas import (
    PostCreateSchema, PostResponseSchema, ReportCreateSchema, ReportResponseSchema, WriteResultSchema
)
from tstar_feed.core.errors import ContentRejectedError


posts_bp = Blueprint('posts_bp', __name__)


def _feed_payload(feed, result=None):
    payload = {
        "mode": feed.mode.value,
        "posts": PostResponseSchema(many=True).dump(feed.visible_posts()),
    }
    if result is not None:
        payload.update(WriteResultSchema().dump(result))
    return payload


@posts_bp.route('', methods=['GET'])
def get_feed():
    """
    현재 세션의 차단 목록을 적용한 피드를 반환합니다.
    - 클라우드 모드: 마지막으로 받은 실시간 스냅샷
    - 로컬 모드: 로컬 저장소의 최신 목록
    """
    feed = current_app.services['feed']
    return jsonify(_feed_payload(feed)), 200


@posts_bp.route('', methods=['POST'])
def create_post():
    """
    새 게시글을 작성합니다.
    - 클라우드 저장이 실패하면 로컬에 저장하고 notice를 함께 반환합니다.
    """
    feed = current_app.services['feed']
    try:
        data = PostCreateSchema().load(request.get_json(silent=True) or {})
        result = feed.create_post(data['text'], data.get('image_uri'))
        return jsonify(_feed_payload(feed, result)), 201
    except ContentRejectedError as e:
        return jsonify(e.to_dict()), 400


@posts_bp.route('/<string:post_id>/like', methods=['POST'])
def like_post(post_id: str):
    feed = current_app.services['feed']
    result = feed.like_post(post_id)
    return jsonify(_feed_payload(feed, result)), 200


@posts_bp.route('/<string:post_id>/report', methods=['POST'])
def report_post(post_id: str):
    """게시글을 신고합니다. 신고 기록은 항상 로컬에만 저장됩니다."""
    feed = current_app.services['feed']
    data = ReportCreateSchema().load(request.get_json(silent=True) or {})
    report = feed.report_post(post_id, data.get('reason'))
    logging.info(f"신고 접수 (post_id: {post_id})")
    return jsonify(ReportResponseSchema().dump(report)), 201
