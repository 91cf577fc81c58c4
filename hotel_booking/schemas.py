from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .models import Booking, Room


class BookingCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_id: int = Field(alias="roomId", ge=1)


class BookingUpdate(BookingCreate):
    pass


class RoomRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    capacity: int
    hotel_id: int = Field(alias="hotelId")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @classmethod
    def from_db(cls, *, room: Room) -> "RoomRead":
        return cls(
            id=room.id,
            name=room.name,
            capacity=room.capacity,
            hotel_id=room.hotel_id,
            created_at=room.created_at,
            updated_at=room.updated_at,
        )


class BookingRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    room: RoomRead = Field(alias="Room")

    @classmethod
    def from_db(cls, *, booking: Booking, room: Room) -> "BookingRead":
        return cls(id=booking.id, room=RoomRead.from_db(room=room))


class BookingIdRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    booking_id: int = Field(alias="bookingId")
