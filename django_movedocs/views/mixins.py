"""
Django MoveDocs, derived from Django Ledger created by Miguel Sanda <msanda@arrobalytics.com>.
Copyright© EDMA Group Inc licensed under the GPLv3 Agreement.

Contributions to this module:
Miguel Sanda <msanda@arrobalytics.com>
"""
import json
import logging

from django.contrib.auth.mixins import LoginRequiredMixin
from django.core.exceptions import ValidationError, ObjectDoesNotExist
from django.http import Http404, JsonResponse

from django_movedocs.exceptions import ConcurrentModification, ConfirmationRequired, ValidationFailed

logger = logging.getLogger('django_movedocs.views')


class LoginRequiredMixIn(LoginRequiredMixin):

    def handle_no_permission(self):
        return JsonResponse({
            'message': 'Unauthorized'
        }, status=401)


class StaffRequiredMixIn:
    """
    Restricts a view to staff users. Must come after LoginRequiredMixIn.
    """

    def dispatch(self, request, *args, **kwargs):
        if not (request.user.is_staff or request.user.is_superuser):
            return JsonResponse({
                'message': 'Forbidden'
            }, status=403)
        return super().dispatch(request, *args, **kwargs)


class JsonPayloadMixIn:

    def get_payload(self) -> dict:
        if not self.request.body:
            return dict()
        try:
            payload = json.loads(self.request.body)
        except (TypeError, ValueError):
            raise ValidationFailed({'body': ['Request body must be a valid JSON document.']})
        if not isinstance(payload, dict):
            raise ValidationFailed({'body': ['Request body must be a JSON object.']})
        return payload


class MoveDocsAPIErrorMixIn:
    """
    Renders the failures raised by receipt and notification commands as JSON responses.

        * ValidationFailed: 400, with field level errors.
        * Any other ValidationError (amount, balance, duration and state errors): 400.
        * Not found: 404.
        * ConcurrentModification: 409. The client should reload and retry.
        * ConfirmationRequired: 428. The client must repeat the call with explicit confirmation.
    """

    @staticmethod
    def error_response(error: ValidationError, status: int, **extra):
        data = {
            'error': error.__class__.__name__,
            'message': ' '.join(error.messages),
        }
        data.update(extra)
        return JsonResponse(data, status=status)

    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        except (ObjectDoesNotExist, Http404):
            return JsonResponse({
                'error': 'NotFound',
                'message': 'Not found.'
            }, status=404)
        except ConcurrentModification as e:
            logger.info(f'Concurrent modification on {request.path}.')
            return self.error_response(e, status=409)
        except ConfirmationRequired as e:
            return self.error_response(e, status=428)
        except ValidationFailed as e:
            return self.error_response(e, status=400, fields=e.message_dict)
        except ValidationError as e:
            return self.error_response(e, status=400)
