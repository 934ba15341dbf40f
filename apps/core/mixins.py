"""
Mixins for DRF class-based views.

This module scopes querysets to the requesting user's pharmacy and
stamps the pharmacy on created rows.
"""


class PharmacyScopedMixin:
    """
    Filter the view's queryset to the user's pharmacy.

    Usage:
        class MedicationListView(PharmacyScopedMixin, generics.ListCreateAPIView):
            queryset = Medication.objects.all()
    """

    pharmacy_field = "pharmacy"

    def get_queryset(self):
        queryset = super().get_queryset()
        return queryset.filter(**{self.pharmacy_field: self.request.user.pharmacy})

    def perform_create(self, serializer):
        serializer.save(pharmacy=self.request.user.pharmacy)
