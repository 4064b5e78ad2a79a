# app/api/adoptions/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from app.core.exceptions import ServiceError
from app.core.security import admin_required
from .schemas import (
    AdoptionStatusUpdateSchema,
    AdoptionListQuerySchema,
    AdoptionResponseSchema,
    AdoptionStatsResponseSchema,
    decode_submission_form,
)

adoptions_bp = Blueprint('adoptions_bp', __name__)


@adoptions_bp.route('/', methods=['POST'])
@jwt_required()
def submit_application():
    """
    입양 신청서 제출 API (multipart/form-data).
    personalDetails, livingSituation, experience 는 JSON 문자열, idProofFile 은 PDF/JPEG 파일입니다.
    """
    applicant_id = get_jwt_identity()
    adoption_service = current_app.services['adoptions']
    try:
        submission = decode_submission_form(request.form)
        adoption = adoption_service.submit_application(applicant_id, submission, request.files.get('idProofFile'))
        return jsonify({
            "message": "Adoption application submitted successfully",
            "adoption": AdoptionResponseSchema().dump(adoption),
        }), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": "Validation error", "details": err.messages}), 400
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@adoptions_bp.route('/admin', methods=['GET'])
@admin_required
def list_adoptions_for_admin():
    """[관리자 전용] 상태 필터/페이지네이션/정렬을 지원하는 신청 목록."""
    adoption_service = current_app.services['adoptions']
    try:
        params = AdoptionListQuerySchema().load(request.args)
        adoptions, pagination = adoption_service.list_adoptions(**params)
        return jsonify({
            "adoptions": AdoptionResponseSchema(many=True).dump(adoptions),
            "pagination": pagination,
        }), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": "Invalid query parameters", "details": err.messages}), 400


@adoptions_bp.route('/admin/stats', methods=['GET'])
@admin_required
def get_adoption_stats():
    stats = current_app.services['adoptions'].get_stats()
    return jsonify(AdoptionStatsResponseSchema().dump(stats)), 200


@adoptions_bp.route('/user', methods=['GET'])
@jwt_required()
def list_my_applications():
    """로그인한 사용자 본인의 입양 신청 목록."""
    adoptions = current_app.services['adoptions'].list_for_user(get_jwt_identity())
    return jsonify(AdoptionResponseSchema(many=True).dump(adoptions)), 200


@adoptions_bp.route('/pet/<string:pet_id>', methods=['GET'])
@admin_required
def list_applications_for_pet(pet_id: str):
    adoptions = current_app.services['adoptions'].list_for_pet(pet_id)
    return jsonify(AdoptionResponseSchema(many=True).dump(adoptions)), 200


@adoptions_bp.route('/', methods=['GET'])
@admin_required
def list_all_applications():
    adoptions = current_app.services['adoptions'].list_all()
    return jsonify(AdoptionResponseSchema(many=True).dump(adoptions)), 200


@adoptions_bp.route('/<string:adoption_id>', methods=['GET'])
@jwt_required()
def get_application(adoption_id: str):
    """신청서 한 건 조회 (본인 또는 관리자)."""
    requester = current_app.services['users'].get_user(get_jwt_identity())
    if requester is None:
        return jsonify({"error_code": "UNAUTHORIZED", "message": "Please authenticate"}), 401
    try:
        adoption = current_app.services['adoptions'].get_adoption(adoption_id, requester)
        return jsonify(AdoptionResponseSchema().dump(adoption)), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code


@adoptions_bp.route('/<string:adoption_id>', methods=['PATCH'])
@admin_required
def update_application_status(adoption_id: str):
    """
    [관리자 전용] 신청 상태 변경 API.
    emailSent 는 상태가 실제로 바뀌었고 알림 메일이 발송된 경우에만 true 입니다.
    """
    adoption_service = current_app.services['adoptions']
    try:
        data = AdoptionStatusUpdateSchema().load(request.get_json(silent=True) or {})
        kwargs = {'admin_notes': data['admin_notes']} if 'admin_notes' in data else {}
        adoption, email_sent = adoption_service.transition_status(adoption_id, data['status'], **kwargs)
        return jsonify({
            "message": f"Adoption application {data['status'].lower()} successfully",
            "adoption": AdoptionResponseSchema().dump(adoption),
            "emailSent": email_sent,
        }), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "message": "Invalid status. Must be: Pending, Approved, or Rejected",
                        "details": err.messages}), 400
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Update adoption status API error (adoption_id: {adoption_id}): {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "Server error"}), 500


@adoptions_bp.route('/<string:adoption_id>', methods=['DELETE'])
@admin_required
def delete_application(adoption_id: str):
    try:
        current_app.services['adoptions'].delete_adoption(adoption_id)
        return jsonify({"message": "Adoption application deleted successfully"}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
