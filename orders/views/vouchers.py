import logging

from rest_framework.response import Response
from rest_framework.views import APIView

from giftsite import errors
from orders import services
from orders.serializers import VoucherValidateSerializer

logger = logging.getLogger(__name__)


class VoucherValidateView(APIView):
    """
    POST /api/vouchers/validate {code}
    Checks a code against the applicable() predicate without counting a use.
    """
    def post(self, request, *args, **kwargs):
        serializer = VoucherValidateSerializer(data=request.data)
        if not serializer.is_valid():
            raise errors.ValidationError(errors.first_error_message(serializer.errors))

        voucher = services.find_applicable_voucher(serializer.validated_data["code"])
        if voucher is None:
            raise errors.NotFoundError("Voucher is invalid or expired")

        return Response({
            "success": True,
            "voucher": {
                "code": voucher.code,
                "discountType": voucher.discount_type,
                "discountValue": float(voucher.discount_value),
            },
        })
