from rest_framework import serializers
from .models import Project


class ProjectSerializer(serializers.ModelSerializer):
    farm_name = serializers.CharField(source='farm.name', read_only=True)
    created_by_name = serializers.CharField(source='created_by.get_display_name', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    quotes_count = serializers.IntegerField(read_only=True)
    total_quotes_value = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = Project
        fields = [
            'id', 'title', 'description', 'project_number', 'company', 'sequential_number',
            'farm', 'farm_name', 'status', 'status_display', 'quotes_count', 'total_quotes_value',
            'created_by', 'created_by_name', 'created_at', 'updated_at'
        ]
        # Numbering comes from the farm's company and cannot be edited
        read_only_fields = ['project_number', 'company', 'sequential_number', 'created_by', 'created_at', 'updated_at']

    def validate_farm(self, value):
        if self.instance is not None and value.company != self.instance.company:
            raise serializers.ValidationError('A project cannot move to a farm of another company')
        return value
