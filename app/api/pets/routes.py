# app/api/pets/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from marshmallow import ValidationError

from app.core.exceptions import NotFoundError
from app.core.security import admin_required
from .schemas import PetCreateSchema, PetUpdateSchema, PetListQuerySchema, PetResponseSchema

pets_bp = Blueprint('pets_bp', __name__)


@pets_bp.route('/', methods=['GET'])
def list_pets():
    """입양 가능한 반려동물 목록을 조회합니다 (category, includeAdopted 필터)."""
    pet_service = current_app.services['pets']
    try:
        params = PetListQuerySchema().load(request.args)
        pets = pet_service.list_pets(params['category'], params['include_adopted'])
        return jsonify(PetResponseSchema(many=True).dump([pet.to_dict() for pet in pets])), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400


@pets_bp.route('/<string:pet_id>', methods=['GET'])
def get_pet(pet_id: str):
    pet_service = current_app.services['pets']
    try:
        pet = pet_service.get_pet(pet_id)
        return jsonify(PetResponseSchema().dump(pet.to_dict())), 200
    except NotFoundError as e:
        return jsonify(e.to_dict()), e.status_code


@pets_bp.route('/', methods=['POST'])
@admin_required
def create_pet():
    """[관리자 전용] 반려동물을 등록합니다. image 는 업로드된 이미지의 저장 경로입니다."""
    pet_service = current_app.services['pets']
    try:
        pet_data = PetCreateSchema().load(request.get_json(silent=True) or {})
        pet = pet_service.create_pet(pet_data)
        return jsonify(PetResponseSchema().dump(pet.to_dict())), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400


@pets_bp.route('/<string:pet_id>', methods=['PUT'])
@admin_required
def update_pet(pet_id: str):
    """[관리자 전용] 반려동물 정보를 수정합니다."""
    pet_service = current_app.services['pets']
    try:
        update_data = PetUpdateSchema().load(request.get_json(silent=True) or {})
        pet = pet_service.update_pet(pet_id, update_data)
        return jsonify(PetResponseSchema().dump(pet.to_dict())), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except NotFoundError as e:
        return jsonify(e.to_dict()), e.status_code


@pets_bp.route('/<string:pet_id>', methods=['DELETE'])
@admin_required
def delete_pet(pet_id: str):
    pet_service = current_app.services['pets']
    try:
        pet_service.delete_pet(pet_id)
        return jsonify({"message": "Pet deleted successfully"}), 200
    except NotFoundError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"Delete pet API error (pet_id: {pet_id}): {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "Server error"}), 500
