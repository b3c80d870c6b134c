from rest_framework import serializers
from .models import Report


class ReportSerializer(serializers.ModelSerializer):
    farm_name = serializers.CharField(source='farm.name', read_only=True)
    equipment_name = serializers.CharField(source='equipment.name', read_only=True)
    supplier_name = serializers.CharField(source='supplier.name', read_only=True)
    assigned_to_name = serializers.CharField(source='assigned_to.get_display_name', read_only=True)
    created_by_name = serializers.CharField(source='created_by.get_display_name', read_only=True)
    urgency_display = serializers.CharField(source='get_urgency_display', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    active_quotes_count = serializers.SerializerMethodField()

    class Meta:
        model = Report
        fields = [
            'id', 'title', 'description', 'farm', 'farm_name', 'equipment', 'equipment_name',
            'supplier', 'supplier_name', 'assigned_to', 'assigned_to_name',
            'created_by', 'created_by_name', 'urgency', 'urgency_display',
            'status', 'status_display', 'notes', 'active_quotes_count', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def get_active_quotes_count(self, obj):
        # Annotated by the list view; fall back to a query for single objects
        annotated = getattr(obj, 'active_quotes_count', None)
        if annotated is not None:
            return annotated
        return obj.quotes.filter(status__in=['requested', 'received']).count()

    def validate(self, attrs):
        farm = attrs.get('farm', getattr(self.instance, 'farm', None))
        equipment = attrs.get('equipment', getattr(self.instance, 'equipment', None))
        if equipment and farm and equipment.farm_id != farm.id:
            raise serializers.ValidationError({'equipment': 'Equipment does not belong to the selected farm'})
        return attrs
