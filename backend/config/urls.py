from django.contrib import admin
from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenRefreshView

from accounts.api import LoginView, MeView, RegisterView
from bookings.api import BookingViewSet, InquiryViewSet
from payments.api import (
    ConfirmPaymentView,
    CreatePaymentIntentView,
    PaymentStatusView,
    StripeWebhookView,
)
from properties.api import PropertyViewSet

router = DefaultRouter()
router.register(r"properties", PropertyViewSet, basename="property")
router.register(r"bookings", BookingViewSet, basename="booking")
router.register(r"inquiries", InquiryViewSet, basename="inquiry")

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/auth/register/", RegisterView.as_view(), name="auth-register"),
    path("api/auth/login/", LoginView.as_view(), name="auth-login"),
    path("api/auth/refresh/", TokenRefreshView.as_view(), name="auth-refresh"),
    path("api/auth/me/", MeView.as_view(), name="auth-me"),
    path(
        "api/payments/create-payment-intent/",
        CreatePaymentIntentView.as_view(),
        name="payment-intent-create",
    ),
    path("api/payments/confirm/", ConfirmPaymentView.as_view(), name="payment-confirm"),
    path(
        "api/bookings/<int:booking_id>/payment-status/",
        PaymentStatusView.as_view(),
        name="booking-payment-status",
    ),
    path("api/webhooks/stripe/", StripeWebhookView.as_view(), name="stripe-webhook"),
    path("api/", include(router.urls)),
]
