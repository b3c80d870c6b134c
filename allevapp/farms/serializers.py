from rest_framework import serializers
from allevapp.core.models import User
from .models import Farm, Barn, Equipment, Facility


class BarnSerializer(serializers.ModelSerializer):
    farm_name = serializers.CharField(source='farm.name', read_only=True)

    class Meta:
        model = Barn
        fields = ['id', 'name', 'farm', 'farm_name', 'created_at']


class FarmSerializer(serializers.ModelSerializer):
    barns = BarnSerializer(many=True, read_only=True)
    technicians = serializers.PrimaryKeyRelatedField(many=True, read_only=True)
    technician_ids = serializers.PrimaryKeyRelatedField(
        many=True, write_only=True, required=False,
        queryset=User.objects.filter(role=User.ROLE_TECHNICIAN),
    )
    created_by_name = serializers.CharField(source='created_by.get_display_name', read_only=True)

    class Meta:
        model = Farm
        fields = [
            'id', 'name', 'address', 'company', 'technicians', 'technician_ids',
            'barns', 'created_by', 'created_by_name', 'created_at'
        ]
        read_only_fields = ['created_by', 'created_at']

    def create(self, validated_data):
        technicians = validated_data.pop('technician_ids', None)
        farm = Farm.objects.create(**validated_data)
        if technicians is not None:
            farm.technicians.set(technicians)
        return farm

    def update(self, instance, validated_data):
        technicians = validated_data.pop('technician_ids', None)
        instance = super().update(instance, validated_data)
        if technicians is not None:
            instance.technicians.set(technicians)
        return instance


class MaintainedAssetSerializer(serializers.ModelSerializer):
    farm_name = serializers.CharField(source='farm.name', read_only=True)
    is_maintenance_overdue = serializers.BooleanField(read_only=True)
    is_maintenance_due_soon = serializers.BooleanField(read_only=True)

    def validate_maintenance_interval_days(self, value):
        if value <= 0:
            raise serializers.ValidationError("Maintenance interval must be at least one day")
        return value


class EquipmentSerializer(MaintainedAssetSerializer):
    barn_name = serializers.CharField(source='barn.name', read_only=True)

    class Meta:
        model = Equipment
        fields = [
            'id', 'name', 'model', 'serial_number', 'farm', 'farm_name', 'barn', 'barn_name',
            'status', 'description', 'last_maintenance', 'next_maintenance_due',
            'maintenance_interval_days', 'is_maintenance_overdue', 'is_maintenance_due_soon', 'created_at'
        ]

    def validate(self, attrs):
        farm = attrs.get('farm', getattr(self.instance, 'farm', None))
        barn = attrs.get('barn', getattr(self.instance, 'barn', None))
        if barn and farm and barn.farm_id != farm.id:
            raise serializers.ValidationError({'barn': 'Barn does not belong to the selected farm'})
        return attrs


class FacilitySerializer(MaintainedAssetSerializer):
    type_display = serializers.CharField(source='get_type_display', read_only=True)

    class Meta:
        model = Facility
        fields = [
            'id', 'name', 'type', 'type_display', 'farm', 'farm_name', 'description', 'status',
            'last_maintenance', 'next_maintenance_due', 'maintenance_interval_days',
            'is_maintenance_overdue', 'is_maintenance_due_soon', 'created_at'
        ]


class MaintenanceRecordSerializer(serializers.Serializer):
    performed_on = serializers.DateField(required=False)
